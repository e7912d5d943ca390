from prometheus_client import Counter, Histogram


# Payment Metrics
payment_attempts_total = Counter(
    "settlement_payment_attempts_total", "Calls made to the payment processor", ["operation", "outcome"]
)
payment_volume_total = Counter(
    "settlement_payment_volume_minor_total", "Charged amount in minor units", ["currency", "status"]
)

# Settlement Metrics
settlements_total = Counter("settlement_transactions_total", "Settlement outcomes", ["outcome"])
settlement_conflicts_total = Counter(
    "settlement_transaction_conflicts_total", "Settlement attempts rolled back by a concurrent checkout"
)
settlement_duration = Histogram(
    "settlement_transaction_seconds",
    "Time spent in the settlement transaction, including retries",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, float("inf")],
)
seller_credit_total = Counter(
    "settlement_seller_credit_total", "Amount credited to seller wallets (canonical currency)", ["currency"]
)
