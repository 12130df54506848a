"""Middleware for the connector request pipeline.

- **RequestMiddleware**: Correlation IDs, allowlisting, fault isolation, logging
- **CorrelatedResponseWriter**: Records the status written to the client
- **ErrorHandler**: Converts client and transport errors to status lines
"""
