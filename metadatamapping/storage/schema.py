# ==============================================
# Storage schema
# ==============================================
#
# One table / collection per entity type. Both backends enforce
# the same uniqueness rules:
#   - uuid unique in every table
#   - metadata source name unique
#   - (metadata_source_id, code) unique for term mappings and sets
#
# MYSQL_TABLES   → CREATE TABLE statements run by MySQLClient.ensure_schema()
# UNIQUE_KEYS    → (fields, partial filter) unique indexes created by
#                  MongoClient.ensure_schema()
# ==============================================

from metadatamapping.model import (
    MetadataSet,
    MetadataSetMember,
    MetadataSource,
    MetadataTermMapping,
)

_AUDIT_COLUMNS = """
    name VARCHAR(255) NULL,
    description VARCHAR(1024) NULL,
    uuid CHAR(38) NOT NULL,
    retired TINYINT(1) NOT NULL DEFAULT 0,
    retired_by VARCHAR(255) NULL,
    date_retired DATETIME NULL,
    retire_reason VARCHAR(255) NULL,
    date_created DATETIME NULL"""

MYSQL_TABLES = {
    MetadataSource.TABLE: f"""
CREATE TABLE IF NOT EXISTS {MetadataSource.TABLE} (
    id INT NOT NULL AUTO_INCREMENT PRIMARY KEY,{_AUDIT_COLUMNS},
    UNIQUE KEY uq_metadata_source_uuid (uuid),
    UNIQUE KEY uq_metadata_source_name (name)
)""",
    MetadataTermMapping.TABLE: f"""
CREATE TABLE IF NOT EXISTS {MetadataTermMapping.TABLE} (
    id INT NOT NULL AUTO_INCREMENT PRIMARY KEY,{_AUDIT_COLUMNS},
    metadata_source_id INT NOT NULL,
    code VARCHAR(255) NOT NULL,
    metadata_class VARCHAR(1024) NULL,
    metadata_uuid CHAR(38) NULL,
    UNIQUE KEY uq_term_mapping_uuid (uuid),
    UNIQUE KEY uq_term_mapping_source_code (metadata_source_id, code),
    FOREIGN KEY (metadata_source_id) REFERENCES {MetadataSource.TABLE} (id)
)""",
    MetadataSet.TABLE: f"""
CREATE TABLE IF NOT EXISTS {MetadataSet.TABLE} (
    id INT NOT NULL AUTO_INCREMENT PRIMARY KEY,{_AUDIT_COLUMNS},
    metadata_source_id INT NULL,
    code VARCHAR(255) NULL,
    UNIQUE KEY uq_metadata_set_uuid (uuid),
    UNIQUE KEY uq_metadata_set_source_code (metadata_source_id, code),
    FOREIGN KEY (metadata_source_id) REFERENCES {MetadataSource.TABLE} (id)
)""",
    MetadataSetMember.TABLE: f"""
CREATE TABLE IF NOT EXISTS {MetadataSetMember.TABLE} (
    id INT NOT NULL AUTO_INCREMENT PRIMARY KEY,{_AUDIT_COLUMNS},
    metadata_set_id INT NOT NULL,
    metadata_class VARCHAR(1024) NOT NULL,
    metadata_uuid CHAR(38) NOT NULL,
    sort_weight DOUBLE NULL,
    UNIQUE KEY uq_metadata_set_member_uuid (uuid),
    FOREIGN KEY (metadata_set_id) REFERENCES {MetadataSet.TABLE} (id)
)""",
}

UNIQUE_KEYS = {
    MetadataSource.TABLE: [(["uuid"], None), (["name"], None)],
    MetadataTermMapping.TABLE: [(["uuid"], None), (["metadata_source_id", "code"], None)],
    # sets without a code are not namespaced
    MetadataSet.TABLE: [
        (["uuid"], None),
        (["metadata_source_id", "code"], {"code": {"$exists": True}}),
    ],
    MetadataSetMember.TABLE: [(["uuid"], None)],
}
