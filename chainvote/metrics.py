"""
metrics.py - Prometheus metrics for the ledger and voting service.
"""

from prometheus_client import Counter, Gauge, Histogram, start_http_server

VOTES_CAST = Counter(
    'chainvote_votes_cast_total', 'Total number of votes appended to the ledger', ['candidate']
)
VOTES_REJECTED = Counter(
    'chainvote_votes_rejected_total', 'Total number of rejected vote attempts', ['reason']
)
BLOCKS_MINED = Counter(
    'chainvote_blocks_mined_total', 'Total number of blocks mined'
)
MINING_ATTEMPTS = Histogram(
    'chainvote_mining_attempts',
    'Nonces tried per mined block',
    buckets=(1, 16, 64, 256, 1024, 4096, 16384),
)
CHAIN_LENGTH = Gauge(
    'chainvote_chain_length', 'Current number of blocks in the ledger, genesis included'
)
POLL_OPEN = Gauge(
    'chainvote_poll_open', 'Polling state: 1 open, 0 closed'
)


def start_metrics_server(port: int = 8000, addr: str = '0.0.0.0') -> None:
    """
    Start an HTTP server to expose Prometheus metrics on /metrics.
    """
    start_http_server(port, addr=addr)
