"""
Post-rebuild consistency check between the catalog and the index.
"""

from typing import TYPE_CHECKING

from loguru import logger

from catalog_search.schemas.reindex import VerificationResult

if TYPE_CHECKING:
    from catalog_search.clients.base import IndexClient


class ConsistencyVerifier:
    """
    Compares the index document count with the source record count.
    
    The check is advisory: a mismatch is reported, never raised. Callers
    that want a hard failure use VerificationResult.raise_for_mismatch().
    """
    
    def __init__(self, index_client: "IndexClient"):
        self.index_client = index_client
    
    def verify(self, index_name: str, expected: int) -> VerificationResult:
        """
        Count documents in the index and compare with `expected`.
        
        Args:
            index_name: Index to count
            expected: Source record count taken before streaming
            
        Returns:
            VerificationResult
        """
        actual = self.index_client.count(index_name)
        result = VerificationResult(expected=expected, actual=actual)
        
        if result.is_consistent:
            logger.info(f"Index '{index_name}' consistent: {actual} documents")
        else:
            logger.warning(f"Index '{index_name}': {result.warning}")
        
        return result
