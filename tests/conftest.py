# ==============================================
# Pytest Configuration and Fixtures
# ==============================================
#
# Storage runs on MongoClient backed by mongomock, so no database
# server is needed. The host side (concept dictionary and other
# metadata types such as locations) is faked here.
#
# FIXTURES:
# ---------
# - mongo_client      → MongoClient over an in-process mongomock client
# - dao               → MetadataMappingDao over mongo_client
# - property_store    → PropertyStore in tmp_path
# - concept_adapter   → FakeConceptAdapter
# - catalog           → FakeMetadataCatalog (Location, EncounterType)
# - service           → MetadataMappingService wired from the above
# - metadata_source   → a saved MetadataSource
# ==============================================

import uuid as uuid_module
from dataclasses import dataclass, field
from typing import Dict, List

import mongomock
import pytest

from metadatamapping.concept_adapter import ConceptAdapter
from metadatamapping.model import MetadataSource
from metadatamapping.persistence import MetadataMappingDao, PropertyStore
from metadatamapping.registry import MetadataTypeRegistry
from metadatamapping.service import MetadataMappingService
from metadatamapping.storage import MongoClient


def _uuid() -> str:
    return str(uuid_module.uuid4())


# ==============================================
# Host domain fakes
# ==============================================

@dataclass(eq=False)
class ConceptSource:
    name: str
    description: str = ""
    uuid: str = field(default_factory=_uuid)


@dataclass(eq=False)
class ConceptMap:
    source: ConceptSource
    code: str
    retired: bool = False


@dataclass(eq=False)
class Concept:
    concept_id: int
    retired: bool = False
    mappings: List[ConceptMap] = field(default_factory=list)


@dataclass(eq=False)
class Location:
    name: str
    uuid: str = field(default_factory=_uuid)
    retired: bool = False


@dataclass(eq=False)
class EncounterType:
    name: str
    uuid: str = field(default_factory=_uuid)
    retired: bool = False


class FakeConceptAdapter(ConceptAdapter):
    """Concept dictionary kept in dicts; records every save."""

    def __init__(self):
        self.concepts: Dict[int, Concept] = {}
        self.sources: Dict[str, ConceptSource] = {}
        self.saved: List[Concept] = []

    def add_concept(self, concept: Concept) -> Concept:
        self.concepts[concept.concept_id] = concept
        return concept

    def add_source(self, source: ConceptSource) -> ConceptSource:
        self.sources[source.uuid] = source
        return source

    def get_concept(self, concept_id):
        return self.concepts.get(concept_id)

    def get_concepts_by_mapping(self, code, source_name):
        return [
            concept for concept in self.concepts.values()
            if any(m.source.name == source_name and m.code == code for m in concept.mappings)
        ]

    def get_all_concepts(self):
        return list(self.concepts.values())

    def save_concept(self, concept):
        self.saved.append(concept)
        return concept

    def get_concept_source_by_uuid(self, uuid):
        return self.sources.get(uuid)

    def get_concept_source_by_name(self, name):
        return next((s for s in self.sources.values() if s.name == name), None)

    def create_concept_source(self, name, description):
        return self.add_source(ConceptSource(name=name, description=description))

    def get_mapping_sources(self, concept):
        return [mapping.source for mapping in concept.mappings]

    def get_mapping(self, concept, source):
        return next((m for m in concept.mappings if m.source.uuid == source.uuid), None)

    def add_mapping(self, concept, source, code):
        concept.mappings.append(ConceptMap(source=source, code=code))

    def remove_mapping(self, concept, mapping):
        concept.mappings.remove(mapping)

    def retire_mapping(self, concept, mapping):
        mapping.retired = True

    def unretire_mapping(self, concept, mapping):
        mapping.retired = False


class FakeMetadataCatalog:
    """Host-side metadata items (locations, encounter types) by uuid."""

    def __init__(self):
        self.items = {}

    def add(self, item):
        self.items[item.uuid] = item
        return item

    def get(self, uuid):
        return self.items.get(uuid)


# ==============================================
# Fixtures
# ==============================================

@pytest.fixture
def mongo_client():
    client = MongoClient(host="localhost", port=27017, database="metadatamapping_test")
    client.client = mongomock.MongoClient()
    client.ensure_schema()
    yield client
    client.disconnect()


@pytest.fixture
def dao(mongo_client):
    return MetadataMappingDao(mongo_client)


@pytest.fixture
def property_store(tmp_path):
    return PropertyStore(str(tmp_path / "metadata"))


@pytest.fixture
def concept_adapter():
    return FakeConceptAdapter()


@pytest.fixture
def catalog():
    return FakeMetadataCatalog()


@pytest.fixture
def service(dao, concept_adapter, property_store, catalog):
    registry = MetadataTypeRegistry()
    registry.register(Location, catalog.get)
    registry.register(EncounterType, catalog.get)
    return MetadataMappingService(
        dao, concept_adapter, property_store, registry=registry, audit_user="tester"
    )


@pytest.fixture
def metadata_source(service):
    return service.save_metadata_source(MetadataSource(name="org.openmrs.module.emrapi"))
