# ==============================================
# Tests for metadata sources, term mappings, sets and members
# ==============================================

import pytest

from conftest import EncounterType, Location
from metadatamapping.exceptions import InvalidMetadataTypeException, ValidationError
from metadatamapping.model import (
    MetadataSet,
    MetadataSetMember,
    MetadataSource,
    MetadataTermMapping,
    RetiredHandlingMode,
)


def term_mapping(source, code, item=None):
    mapping = MetadataTermMapping(metadata_source=source, code=code, name=code)
    if item is not None:
        mapping.set_mapped_object(item)
    return mapping


def set_member(metadata_set, item, sort_weight=None):
    member = MetadataSetMember(metadata_set=metadata_set, sort_weight=sort_weight)
    member.set_mapped_object(item)
    return member


@pytest.fixture
def metadata_set(service, metadata_source):
    return service.save_metadata_set(
        MetadataSet(name="Login locations", metadata_source=metadata_source, code="loginLocations")
    )


# ==============================================
# Metadata sources
# ==============================================

class TestMetadataSources:

    def test_save_valid_new_object(self, service):
        source = service.save_metadata_source(MetadataSource(name="pih", description="PIH terms"))

        assert source.id is not None
        assert source.date_created is not None
        loaded = service.get_metadata_source(source.id)
        assert loaded == source
        assert loaded.description == "PIH terms"

    def test_get_by_uuid_and_name(self, service, metadata_source):
        assert service.get_metadata_source_by_uuid(metadata_source.uuid) == metadata_source
        assert service.get_metadata_source_by_name("org.openmrs.module.emrapi") == metadata_source
        assert service.get_metadata_source_by_name("unknown") is None
        assert service.get_metadata_source(9999) is None

    def test_save_fails_without_name(self, service):
        with pytest.raises(ValidationError):
            service.save_metadata_source(MetadataSource())

    def test_save_fails_on_duplicate_name(self, service, metadata_source):
        with pytest.raises(ValidationError):
            service.save_metadata_source(MetadataSource(name=metadata_source.name))

    def test_update_existing(self, service, metadata_source):
        metadata_source.description = "EMR API terms"
        service.save_metadata_source(metadata_source)

        assert service.get_metadata_source(metadata_source.id).description == "EMR API terms"

    def test_retire_and_set_info(self, service, metadata_source):
        retired = service.retire_metadata_source(metadata_source, "replaced")

        assert retired.retired is True
        loaded = service.get_metadata_source_by_uuid(metadata_source.uuid)
        assert loaded.retired is True
        assert loaded.retire_reason == "replaced"
        assert loaded.retired_by == "tester"
        assert loaded.date_retired is not None

    def test_retire_requires_reason(self, service, metadata_source):
        with pytest.raises(ValidationError):
            service.retire_metadata_source(metadata_source, " ")

    def test_get_metadata_sources(self, service, metadata_source):
        other = service.save_metadata_source(MetadataSource(name="aaa"))
        service.retire_metadata_source(other, "unused")

        assert service.get_metadata_sources() == [metadata_source]
        assert service.get_metadata_sources(include_retired=True) == [other, metadata_source]


# ==============================================
# Metadata term mappings
# ==============================================

class TestMetadataTermMappings:

    def test_save_valid_new_object(self, service, metadata_source, catalog):
        location = catalog.add(Location(name="Unknown Location"))

        mapping = service.save_metadata_term_mapping(
            term_mapping(metadata_source, "unknownLocation", location)
        )

        loaded = service.get_metadata_term_mapping(mapping.id)
        assert loaded.code == "unknownLocation"
        assert loaded.metadata_source == metadata_source
        assert loaded.metadata_class == "Location"
        assert loaded.metadata_uuid == location.uuid

    def test_fail_if_code_is_not_unique_within_source(self, service, metadata_source):
        service.save_metadata_term_mapping(term_mapping(metadata_source, "code1"))

        with pytest.raises(ValidationError):
            service.save_metadata_term_mapping(term_mapping(metadata_source, "code1"))

    def test_same_code_in_other_source(self, service, metadata_source):
        other_source = service.save_metadata_source(MetadataSource(name="other"))
        service.save_metadata_term_mapping(term_mapping(metadata_source, "code1"))

        saved = service.save_metadata_term_mapping(term_mapping(other_source, "code1"))

        assert saved.id is not None

    def test_resave_keeps_code(self, service, metadata_source):
        mapping = service.save_metadata_term_mapping(term_mapping(metadata_source, "code1"))
        mapping.description = "changed"

        service.save_metadata_term_mapping(mapping)

        assert service.get_metadata_term_mapping_by_uuid(mapping.uuid).description == "changed"

    def test_save_fails_without_source_or_code(self, service, metadata_source):
        with pytest.raises(ValidationError):
            service.save_metadata_term_mapping(MetadataTermMapping(code="code1"))
        with pytest.raises(ValidationError):
            service.save_metadata_term_mapping(MetadataTermMapping(metadata_source=metadata_source))

    def test_save_fails_with_class_but_no_uuid(self, service, metadata_source):
        mapping = term_mapping(metadata_source, "code1")
        mapping.metadata_class = "Location"

        with pytest.raises(ValidationError):
            service.save_metadata_term_mapping(mapping)

    def test_batch_save_stops_at_first_failure(self, service, metadata_source):
        mappings = [
            term_mapping(metadata_source, "a"),
            term_mapping(metadata_source, "a"),
            term_mapping(metadata_source, "b"),
        ]

        with pytest.raises(ValidationError):
            service.save_metadata_term_mappings(mappings)

        assert service.get_metadata_term_mapping_by_code(metadata_source, "a") is not None
        assert service.get_metadata_term_mapping_by_code(metadata_source, "b") is None

    def test_batch_save(self, service, metadata_source):
        saved = service.save_metadata_term_mappings(
            [term_mapping(metadata_source, "a"), term_mapping(metadata_source, "b")]
        )

        assert [mapping.code for mapping in saved] == ["a", "b"]
        assert all(mapping.id is not None for mapping in saved)

    def test_get_by_code_returns_retired_term_mapping(self, service, metadata_source):
        mapping = service.save_metadata_term_mapping(term_mapping(metadata_source, "code1"))
        service.retire_metadata_term_mapping(mapping, "obsolete")

        found = service.get_metadata_term_mapping_by_code(metadata_source, "code1")

        assert found == mapping
        assert found.retired is True

    def test_get_term_mappings_returns_only_unretired(self, service, metadata_source):
        active = service.save_metadata_term_mapping(term_mapping(metadata_source, "a"))
        retired = service.save_metadata_term_mapping(term_mapping(metadata_source, "b"))
        service.retire_metadata_term_mapping(retired, "obsolete")

        assert service.get_metadata_term_mappings(metadata_source) == [active]

    def test_get_unretired_term_mappings_referring_to_object(self, service, metadata_source, catalog):
        location = catalog.add(Location(name="Outpatient"))
        other = catalog.add(Location(name="Inpatient"))
        first = service.save_metadata_term_mapping(term_mapping(metadata_source, "a", location))
        retired = service.save_metadata_term_mapping(term_mapping(metadata_source, "b", location))
        service.save_metadata_term_mapping(term_mapping(metadata_source, "c", other))
        service.retire_metadata_term_mapping(retired, "obsolete")

        assert service.get_metadata_term_mappings_referring_to(location) == [first]

    def test_retire_and_set_info(self, service, metadata_source):
        mapping = service.save_metadata_term_mapping(term_mapping(metadata_source, "code1"))

        service.retire_metadata_term_mapping(mapping, "obsolete")

        loaded = service.get_metadata_term_mapping(mapping.id)
        assert loaded.retired is True
        assert loaded.retire_reason == "obsolete"
        assert loaded.retired_by == "tester"


# ==============================================
# Metadata item resolution
# ==============================================

class TestMetadataItems:

    def test_return_unretired_metadata_item_for_unretired_term(self, service, metadata_source, catalog):
        location = catalog.add(Location(name="Unknown Location"))
        service.save_metadata_term_mapping(term_mapping(metadata_source, "unknownLocation", location))

        item = service.get_metadata_item(Location, metadata_source.name, "unknownLocation")

        assert item is location

    def test_not_return_retired_metadata_item_for_unretired_term(self, service, metadata_source, catalog):
        location = catalog.add(Location(name="Closed ward", retired=True))
        service.save_metadata_term_mapping(term_mapping(metadata_source, "closedWard", location))

        assert service.get_metadata_item(Location, metadata_source.name, "closedWard") is None

    def test_not_return_unretired_metadata_item_for_retired_term(self, service, metadata_source, catalog):
        location = catalog.add(Location(name="Unknown Location"))
        mapping = service.save_metadata_term_mapping(
            term_mapping(metadata_source, "unknownLocation", location)
        )
        service.retire_metadata_term_mapping(mapping, "obsolete")

        assert service.get_metadata_item(Location, metadata_source.name, "unknownLocation") is None

    def test_fail_on_type_mismatch(self, service, metadata_source, catalog):
        location = catalog.add(Location(name="Unknown Location"))
        service.save_metadata_term_mapping(term_mapping(metadata_source, "unknownLocation", location))

        with pytest.raises(InvalidMetadataTypeException):
            service.get_metadata_item(EncounterType, metadata_source.name, "unknownLocation")

    def test_return_none_if_term_or_source_does_not_exist(self, service, metadata_source):
        assert service.get_metadata_item(Location, metadata_source.name, "missing") is None
        assert service.get_metadata_item(Location, "no such source", "missing") is None

    def test_resolve_own_entity_types(self, service, metadata_source, metadata_set):
        mapping = term_mapping(metadata_source, "loginLocationsSet", metadata_set)
        service.save_metadata_term_mapping(mapping)

        item = service.get_metadata_item(MetadataSet, metadata_source.name, "loginLocationsSet")

        assert item == metadata_set

    def test_get_unretired_metadata_items_of_unretired_terms_matching_type(self, service, metadata_source, catalog):
        outpatient = catalog.add(Location(name="Outpatient"))
        inpatient = catalog.add(Location(name="Inpatient"))
        closed = catalog.add(Location(name="Closed", retired=True))
        retired_term_location = catalog.add(Location(name="Old clinic"))
        admission = catalog.add(EncounterType(name="Admission"))
        service.save_metadata_term_mappings([
            term_mapping(metadata_source, "outpatient", outpatient),
            term_mapping(metadata_source, "inpatient", inpatient),
            term_mapping(metadata_source, "closed", closed),
            term_mapping(metadata_source, "oldClinic", retired_term_location),
            term_mapping(metadata_source, "admission", admission),
        ])
        service.retire_metadata_term_mapping(
            service.get_metadata_term_mapping_by_code(metadata_source, "oldClinic"), "moved"
        )

        items = service.get_metadata_items(Location, metadata_source.name)

        assert items == [outpatient, inpatient]
        assert service.get_metadata_items(EncounterType, metadata_source.name) == [admission]

    def test_get_metadata_items_returns_nothing_if_source_does_not_exist(self, service):
        assert service.get_metadata_items(Location, "no such source") == []


# ==============================================
# Metadata sets and members
# ==============================================

class TestMetadataSets:

    def test_save_valid_new_object(self, service, metadata_set, metadata_source):
        loaded = service.get_metadata_set(metadata_set.id)

        assert loaded == metadata_set
        assert loaded.code == "loginLocations"
        assert loaded.metadata_source == metadata_source
        assert service.get_metadata_set_by_uuid(metadata_set.uuid) == metadata_set
        assert service.get_metadata_set_by_code(metadata_source, "loginLocations") == metadata_set

    def test_fail_if_code_is_not_unique_within_source(self, service, metadata_set, metadata_source):
        with pytest.raises(ValidationError):
            service.save_metadata_set(MetadataSet(metadata_source=metadata_source, code="loginLocations"))

    def test_fail_if_source_is_not_saved(self, service):
        unsaved_source = MetadataSource(name="never saved")

        with pytest.raises(ValidationError):
            service.save_metadata_set(MetadataSet(name="s", metadata_source=unsaved_source))

        assert unsaved_source.id is None

    def test_batch_save_members_stops_at_first_failure(self, service, metadata_set, catalog):
        first = set_member(metadata_set, catalog.add(Location(name="A")))
        invalid = MetadataSetMember(metadata_set=metadata_set)
        last = set_member(metadata_set, catalog.add(Location(name="B")))

        with pytest.raises(ValidationError):
            service.save_metadata_set_members([first, invalid, last])

        assert service.get_metadata_set_member_by_uuid(first.uuid) == first
        assert service.get_metadata_set_member_by_uuid(last.uuid) is None
        assert last.id is None

    def test_return_a_retired_set(self, service, metadata_set):
        service.retire_metadata_set(metadata_set, "unused")

        assert service.get_metadata_set(metadata_set.id).retired is True

    def test_retire_members(self, service, metadata_set, catalog):
        members = service.save_metadata_set_members([
            set_member(metadata_set, catalog.add(Location(name="A"))),
            set_member(metadata_set, catalog.add(Location(name="B"))),
        ])

        retired = service.retire_metadata_set(metadata_set, "unused")

        assert retired.retired is True
        assert retired.retire_reason == "unused"
        for member in members:
            loaded = service.get_metadata_set_member(member.id)
            assert loaded.retired is True
            assert loaded.retire_reason == "unused"

    def test_save_member_requires_saved_set_and_item(self, service, metadata_set):
        with pytest.raises(ValidationError):
            service.save_metadata_set_member(set_member(MetadataSet(name="unsaved"), Location(name="A")))
        with pytest.raises(ValidationError):
            service.save_metadata_set_member(MetadataSetMember(metadata_set=metadata_set))

    def test_get_member_by_uuid_and_retire(self, service, metadata_set, catalog):
        member = service.save_metadata_set_member(
            set_member(metadata_set, catalog.add(Location(name="A")), sort_weight=1.0)
        )

        loaded = service.get_metadata_set_member_by_uuid(member.uuid)
        assert loaded.metadata_set == metadata_set
        assert loaded.sort_weight == 1.0

        service.retire_metadata_set_member(loaded, "removed")
        assert service.get_metadata_set_member(member.id).retired is True


class TestMetadataSetMembers:

    @pytest.fixture
    def locations(self, service, metadata_set, catalog):
        # saved out of order on purpose
        weights = {"C": 3.0, "A": 1.0, "D": 4.0, "B": 2.0}
        locations = {}
        for name, weight in weights.items():
            locations[name] = catalog.add(Location(name=name))
            service.save_metadata_set_member(set_member(metadata_set, locations[name], weight))
        return locations

    @staticmethod
    def names(members, catalog):
        return [catalog.get(member.metadata_uuid).name for member in members]

    def test_get_members_in_desired_order(self, service, metadata_set, locations, catalog):
        members = service.get_metadata_set_members(metadata_set)

        assert self.names(members, catalog) == ["A", "B", "C", "D"]

    def test_get_members_by_code_in_desired_order(self, service, metadata_source, locations, catalog):
        members = service.get_metadata_set_members_by_code(metadata_source.name, "loginLocations")

        assert self.names(members, catalog) == ["A", "B", "C", "D"]

    def test_pagination(self, service, metadata_set, locations, catalog):
        members = service.get_metadata_set_members(metadata_set, first_result=1, max_results=2)

        assert self.names(members, catalog) == ["B", "C"]

    def test_respect_retired_handling_mode(self, service, metadata_set, locations, catalog):
        member = service.get_metadata_set_members(metadata_set, 1, 1)[0]
        service.retire_metadata_set_member(member, "removed")

        active = service.get_metadata_set_members(metadata_set)
        everything = service.get_metadata_set_members(
            metadata_set, 0, None, RetiredHandlingMode.INCLUDE_RETIRED
        )
        retired = service.get_metadata_set_members(
            metadata_set, 0, None, RetiredHandlingMode.ONLY_RETIRED
        )

        assert self.names(active, catalog) == ["A", "C", "D"]
        assert self.names(everything, catalog) == ["A", "B", "C", "D"]
        assert self.names(retired, catalog) == ["B"]

    def test_members_without_weight_are_included(self, service, metadata_set, locations, catalog):
        service.save_metadata_set_member(set_member(metadata_set, catalog.add(Location(name="E"))))

        members = service.get_metadata_set_members(metadata_set)

        # position of unweighted members depends on the backend
        assert sorted(self.names(members, catalog)) == ["A", "B", "C", "D", "E"]
        weighted = [name for name in self.names(members, catalog) if name != "E"]
        assert weighted == ["A", "B", "C", "D"]

    def test_nothing_if_set_does_not_exist(self, service, metadata_source):
        assert service.get_metadata_set_members(None) == []
        assert service.get_metadata_set_members_by_code(metadata_source.name, "missing") == []
        assert service.get_metadata_set_members_by_code("no such source", "missing") == []


class TestMetadataSetItems:

    def test_get_unretired_items_of_unretired_members_matching_type_in_sort_weight_order(
        self, service, metadata_set, metadata_source, catalog
    ):
        first = catalog.add(Location(name="First"))
        second = catalog.add(Location(name="Second"))
        third = catalog.add(Location(name="Third"))
        retired_location = catalog.add(Location(name="Retired", retired=True))
        removed = catalog.add(Location(name="Removed"))
        encounter_type = catalog.add(EncounterType(name="Check-in"))
        members = service.save_metadata_set_members([
            set_member(metadata_set, third, 30),
            set_member(metadata_set, retired_location, 5),
            set_member(metadata_set, first, 10),
            set_member(metadata_set, encounter_type, 15),
            set_member(metadata_set, removed, 17),
            set_member(metadata_set, second, 20),
        ])
        service.retire_metadata_set_member(members[4], "removed")

        assert service.get_metadata_set_items(Location, metadata_set) == [first, second, third]
        assert service.get_metadata_set_items(Location, metadata_set, 1, 1) == [second]
        assert service.get_metadata_set_items_by_code(
            Location, metadata_source.name, "loginLocations", 1, 5
        ) == [second, third]
        assert service.get_metadata_set_items(EncounterType, metadata_set) == [encounter_type]

    def test_return_nothing_if_set_does_not_exist(self, service, metadata_source):
        assert service.get_metadata_set_items(Location, None) == []
        assert service.get_metadata_set_items_by_code(Location, metadata_source.name, "missing") == []
