"""Core infrastructure package for shared application functionality.

- **config**: Centralized configuration management with environment support
- **context**: Request context and correlation ID management
- **exceptions**: Structured exception hierarchy with error codes
- **error_context**: Sensitive data sanitization for safe logging
- **lifecycle**: Startup state machine driven by the application lifespan
- **logging**: Structured logging with console and JSON file sinks
- **types**: Type aliases for better code clarity
"""
