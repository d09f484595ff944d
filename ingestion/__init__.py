"""
ETL pipeline components for building the bangumi-db database.

This package contains all components for the Extract-Transform-Load pipeline:

Modules:
    base: Abstract base class for dataset providers (parsing and validation)
    runner: ETL orchestrator that coordinates the pipeline phases
    provenance: Provenance metadata (dataset version, checksum, counts)

Subpackages:
    extractors: Dataset providers (local npm package, CDN download)
    transformers: Timestamp parsing, site classification, URL resolution
                  and record normalization
    loaders: SQLite loader with atomic item reload and native upserts

Architecture:
    The pipeline is a single sequential pass:
    
    1. Extract - Load package.json and dist/data.json
    2. Catalog - Upsert the siteMeta catalog into site_meta
    3. Transform/Load - Normalize every item and write items, titles and
       sites in one transaction
    4. Provenance - Upsert dataset identity and row counts into meta

Usage:
    from ingestion.extractors.local_extractor import LocalDatasetExtractor
    from ingestion.runner import ETLRunner

Example:
    source = LocalDatasetExtractor("node_modules/bangumi-data")
    
    runner = ETLRunner(session)
    result = await runner.run(source)
    
    print(f"Loaded {result['items_loaded']} items")

Error Handling:
    Field-level problems degrade to NULL inside the transformers. Source
    access and sink failures raise the exceptions in core.exceptions and
    abort the run.
"""
