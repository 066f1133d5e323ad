"""Synthetic catalog data for benchmarks and local runs."""

import random
from datetime import datetime
from typing import Optional

from loguru import logger

from catalog_search.schemas.catalog import CatalogRecord
from catalog_search.sources.base import SourceRepository


def seed_test_data(
    repository: SourceRepository,
    size: int,
    user_id: str = "admin",
    chunk_size: int = 1000,
    rng: Optional[random.Random] = None
) -> int:
    """
    Top the catalog up to `size` records with "Test Product {i}" rows.
    
    Args:
        repository: Catalog to fill
        size: Target record count
        user_id: Owner written to the audit fields
        chunk_size: Records inserted per call
        rng: Random source (for reproducible prices and stock)
        
    Returns:
        Number of records added (0 if the catalog is already large enough)
    """
    rng = rng or random.Random()
    current = repository.count()
    if current >= size:
        logger.info(f"Catalog already has {current} records (target {size})")
        return 0
    
    next_id = repository.next_id()
    now = datetime.now()
    added = 0
    batch = []
    
    for i in range(current, size):
        batch.append(CatalogRecord(
            product_id=next_id + added + len(batch),
            product_name=f"Test Product {i}",
            unit_price=float(rng.randint(1, 999)),
            units_in_stock=rng.randint(1, 99),
            category_id=1,
            user_id=user_id,
            created_by=user_id,
            created_date=now,
        ))
        
        if len(batch) >= chunk_size:
            added += repository.add_records(batch)
            batch = []
    
    if batch:
        added += repository.add_records(batch)
    
    logger.info(f"Seeded {added} test records (catalog size: {current + added})")
    return added
