"""
Core utilities and configuration for the bangumi-db ETL system.

This package provides foundational components used throughout the pipeline:

Modules:
    config: Application configuration and environment variable management
    database: Async engine, session factory and schema creation
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration and utilities

Usage:
    from core.config import settings
    from core.database import create_engine, create_session_maker, init_schema
    from core.exceptions import LoadError, NetworkError
    from core.logging import setup_logging

Example:
    # Initialize logging
    setup_logging()
    
    # Prepare the SQLite file and open a session
    engine = create_engine()
    await init_schema(engine)
    async with create_session_maker(engine)() as session:
        pass
"""
