# ==============================================
# Service wiring
# ==============================================
#
# FUNCTIONS:
# ----------
# - create_storage_client(config: AppConfig) -> MySQLClient | MongoClient
#     Pick the backend named by config.storage_backend.
#
# - create_service(concept_adapter, config=None, registry=None)
#     1. Load config (from .env or passed in)
#     2. Connect the storage client and ensure the schema
#     3. Open the property store under config.properties_dir
#     4. Return a MetadataMappingService
#
# USAGE:
# ------
#   service = create_service(MyConceptAdapter())
#   service.get_metadata_item(Location, "org.openmrs.module.emrapi", "unknownLocation")
#
# ==============================================

from typing import Optional

from metadatamapping.concept_adapter import ConceptAdapter
from metadatamapping.config import AppConfig, get_config
from metadatamapping.exceptions import ConfigurationError
from metadatamapping.persistence import MetadataMappingDao, PropertyStore
from metadatamapping.registry import MetadataTypeRegistry
from metadatamapping.service import MetadataMappingService
from metadatamapping.storage import MongoClient, MySQLClient


def create_storage_client(config: AppConfig):
    if config.storage_backend == "mysql":
        return MySQLClient(
            host=config.mysql.host,
            port=config.mysql.port,
            user=config.mysql.user,
            password=config.mysql.password,
            database=config.mysql.database
        )
    if config.storage_backend == "mongo":
        return MongoClient(
            host=config.mongo.host,
            port=config.mongo.port,
            database=config.mongo.database,
            user=config.mongo.user,
            password=config.mongo.password
        )
    raise ConfigurationError(
        f"Unknown storage backend '{config.storage_backend}', expected 'mysql' or 'mongo'"
    )


def create_service(
    concept_adapter: ConceptAdapter,
    config: Optional[AppConfig] = None,
    registry: Optional[MetadataTypeRegistry] = None
) -> MetadataMappingService:
    config = config or get_config()

    client = create_storage_client(config)
    client.connect()
    client.ensure_schema()

    return MetadataMappingService(
        dao=MetadataMappingDao(client),
        concept_adapter=concept_adapter,
        properties=PropertyStore(config.properties_dir),
        registry=registry,
        audit_user=config.audit_user,
    )
