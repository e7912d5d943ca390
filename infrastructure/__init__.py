"""
Infrastructure Package
======================

Provides abstraction layers for external dependencies following the Dependency Inversion Principle.

Modules:
    - payments: Payment provider abstraction (Stripe, mock)
    - email: Email service abstraction (SMTP, mock)
    - notifications: Templated notification delivery (email, mock)
    - observability: OpenTelemetry tracing
    - container: Lazily built, cached service instances

This package enables:
    - Easy testing with mock implementations
    - Switching between providers without code changes
    - Loose coupling between business logic and infrastructure
"""
