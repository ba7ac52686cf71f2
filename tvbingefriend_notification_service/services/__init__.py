"""Services module.

Services are imported from their own modules; provider clients depend on
``retry_service``, so this package does not import the other services eagerly.
"""
