# ==============================================
# Metadata Mapping
# ==============================================
#
# Package Structure:
#
# metadatamapping/
# ├── model/             # Metadata sources, term mappings, sets, members
# ├── storage/           # Row clients for MySQL / MongoDB
# ├── persistence/       # DAO over a row client + global property store
# ├── concept_adapter.py # Host concept dictionary interface
# ├── registry.py        # Metadata type -> loader lookup table
# ├── service.py         # MetadataMappingService facade
# ├── context.py         # Wires a service from AppConfig
# └── config.py          # Configuration management
#
# ==============================================

__version__ = "0.1.0"
