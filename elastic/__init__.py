from .client import es, health_check
from .indexer import ensure_transactions_index
from .store import ElasticTransactionStore, build_transaction_query
