# ==============================================
# mqtt2clickhouse
# ==============================================
#
# Package Structure (4 Stages + Orchestrator):
#
# mqtt2clickhouse/
# ├── normalization/    # Stage 1: Topic + payload -> typed Record
# ├── schema/           # Column types, descriptors, compatibility rules
# ├── registry/         # Stage 2: Shared table -> schema cache
# ├── storage/          # Stage 3+4: Create/validate tables, insert rows
# ├── config.py         # Configuration management
# ├── errors.py         # Error taxonomy
# ├── ingest.py         # Single consumer loop
# ├── pipeline.py       # Bootstrap: store, registry, queue, consumer thread
# ├── sources.py        # Message sources feeding the queue
# └── cli.py            # Command line entry point
#
# ==============================================

__version__ = "0.1.0"
