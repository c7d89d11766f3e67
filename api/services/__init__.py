"""Business rules for series tracking and accounts.

Routes call services; services call repositories. A service takes the
request's ``AsyncSession`` plus plain values, returns frozen records and
raises its own exceptions (``SeriesNotFoundError``,
``EmailAlreadyRegisteredError``, the ``SeriesValidationError`` family),
which the HTTP layer maps to status codes. Services never build SQL and
never see request or response objects.
"""
