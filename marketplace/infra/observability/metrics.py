from prometheus_client import Counter, Histogram


# Checkout Metrics
checkouts_total = Counter("marketplace_checkouts_total", "Checkout attempts by outcome", ["outcome"])
checkout_value = Histogram(
    "marketplace_checkout_value",
    "Checkout subtotal distribution (canonical currency)",
    buckets=[1000, 5000, 10000, 25000, 50000, 100000, 250000, 1000000, float("inf")],
)
orders_placed_total = Counter("marketplace_orders_placed_total", "Seller orders created by settlement")

# Notification Metrics
notifications_total = Counter(
    "marketplace_order_notifications_total", "Order confirmation deliveries", ["outcome"]
)
