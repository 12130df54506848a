"""Core package for shared connector functionality.

- **allowlist**: Host header allowlisting
- **config**: Settings and the frozen connector configuration
- **context**: Correlation ID management
- **exceptions**: Client, transport and internal error hierarchy
- **listener**: Listener address variants
- **logging**: Structured logging with Loguru
"""
