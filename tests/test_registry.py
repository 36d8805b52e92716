"""
Tests for odata_engine.schema (type registry).
"""

import logging

import pytest

from odata_engine.core.errors import ODataConfigurationError
from odata_engine.parsers.base import NONE_PARSER
from odata_engine.parsers.edm import EDM_PARSERS
from odata_engine.parsers.enum_type import EnumTypeParser
from odata_engine.parsers.structured_type import StructuredTypeParser
from odata_engine.schema.registry import SchemaRegistry, UnresolvedReference, strip_collection


@pytest.fixture
def registry(schema_config):
    reg = SchemaRegistry()
    reg.register_schema(schema_config)
    return reg.configure()


class TestRegistration:
    """Tests for register_schema."""

    def test_register_accepts_camel_case(self, schema_config):
        reg = SchemaRegistry()
        schema = reg.register_schema(schema_config)
        assert schema.namespace == "Acme"
        assert schema.alias == "self"
        assert [e.name for e in schema.enums] == ["Color", "Status"]
        assert reg.configured is False

    def test_duplicate_namespace_raises(self, schema_config):
        reg = SchemaRegistry()
        reg.register_schema(schema_config)
        with pytest.raises(ODataConfigurationError, match="already registered"):
            reg.register_schema({"namespace": "Acme"})

    def test_forward_references_tolerated_until_configure(self):
        reg = SchemaRegistry()
        reg.register_schema({
            "namespace": "Fwd",
            "entities": [{"name": "A", "fields": {"b": {"type": "Fwd2.B"}}}],
        })
        reg.register_schema({
            "namespace": "Fwd2",
            "entities": [{"name": "B", "base": "Fwd.A", "fields": {}}],
        })
        reg.configure()
        assert reg.unresolved == []
        a = reg.find_parser_for_type("Fwd.A")
        assert a.field("b").parser is reg.find_parser_for_type("Fwd2.B")
        assert a.children[0].type == "Fwd2.B"


class TestConfigure:
    """Tests for the linking pass."""

    def test_inheritance_linked(self, registry):
        person = registry.find_parser_for_type("Acme.Person")
        employee = registry.find_parser_for_type("Acme.Employee")
        assert employee.parent is person
        assert person.children == [employee]
        assert employee.is_subtype_of("Acme.Person")
        assert not person.is_subtype_of("Acme.Employee")

    def test_multi_level_inheritance(self):
        reg = SchemaRegistry()
        reg.register_schema({
            "namespace": "Zoo",
            "entities": [
                {"name": "Animal", "fields": {"id": {"type": "Edm.Int32", "key": True}}},
                {"name": "Cat", "base": "Zoo.Mammal", "fields": {"lives": {"type": "Edm.Int32"}}},
                {"name": "Mammal", "base": "Zoo.Animal", "fields": {"fur": {"type": "Edm.Boolean"}}},
                {"name": "Dog", "base": "Zoo.Mammal", "fields": {}},
            ],
        })
        reg.configure()
        animal = reg.find_parser_for_type("Zoo.Animal")
        assert animal.find_parser("Zoo.Cat").type == "Zoo.Cat"
        assert animal.find_parser("Zoo.Dog").type == "Zoo.Dog"
        assert reg.hierarchy.ancestors("Zoo.Cat") == ["Zoo.Mammal", "Zoo.Animal"]
        cat = reg.find_parser_for_type("Zoo.Cat")
        assert [f.name for f in cat.all_fields()] == ["id", "fur", "lives"]
        assert [k.name for k in cat.keys()] == ["id"]

    def test_inheritance_cycle_raises(self):
        reg = SchemaRegistry()
        reg.register_schema({
            "namespace": "Loop",
            "entities": [
                {"name": "A", "base": "Loop.B"},
                {"name": "B", "base": "Loop.A"},
            ],
        })
        with pytest.raises(ODataConfigurationError, match="cycle"):
            reg.configure()

    def test_configure_is_repeatable(self, registry):
        registry.configure()
        employee = registry.find_parser_for_type("Acme.Employee")
        assert employee.parent.type == "Acme.Person"
        assert len(registry.find_parser_for_type("Acme.Person").children) == 1

    def test_fields_resolved(self, registry):
        person = registry.find_parser_for_type("Acme.Person")
        assert person.field("id").parser is EDM_PARSERS["Edm.Int32"]
        assert isinstance(person.field("favoriteColor").parser, EnumTypeParser)
        assert isinstance(person.field("address").parser, StructuredTypeParser)
        assert person.field("friends").parser is person
        assert registry.unresolved == []


class TestUnresolvedReferences:
    """Resolution misses degrade to a pass-through parser and are recorded."""

    def _registry(self):
        reg = SchemaRegistry()
        reg.register_schema({
            "namespace": "Part",
            "entities": [
                {
                    "name": "Thing",
                    "base": "Part.Missing",
                    "fields": {
                        "id": {"type": "Edm.Int32", "key": True},
                        "gadget": {"type": "Other.Gadget"},
                    },
                }
            ],
            "callables": [{"name": "Make", "returnType": {"type": "Part.Nope"}}],
        })
        return reg

    def test_unresolved_collected(self, caplog):
        reg = self._registry()
        with caplog.at_level(logging.WARNING, logger="odata_engine.schema"):
            reg.configure()
        assert UnresolvedReference("Part.Thing", "base", "Part.Missing") in reg.unresolved
        assert UnresolvedReference("Part.Thing", "gadget", "Other.Gadget") in reg.unresolved
        assert UnresolvedReference("Part.Make", "return", "Part.Nope") in reg.unresolved
        assert "Other.Gadget" in caplog.text

    def test_unresolved_field_passes_values_through(self):
        reg = self._registry().configure()
        thing = reg.find_parser_for_type("Part.Thing")
        assert thing.field("gadget").parser is NONE_PARSER
        assert thing.field("gadget").resolved is False
        payload = {"id": "7", "gadget": {"any": "thing"}}
        assert thing.deserialize(payload) == {"id": 7, "gadget": {"any": "thing"}}

    def test_strict_raises(self):
        reg = self._registry()
        with pytest.raises(ODataConfigurationError, match="Other.Gadget"):
            reg.configure(strict=True)


class TestLookups:
    """Tests for find_* lookups."""

    def test_longest_namespace_wins(self):
        reg = SchemaRegistry()
        reg.register_schema({"namespace": "A", "entities": [{"name": "Widget"}]})
        reg.register_schema({"namespace": "A.B", "entities": [{"name": "Widget"}]})
        reg.configure()
        assert reg.find_schema_for_type("A.B.Widget").namespace == "A.B"
        assert reg.find_schema_for_type("A.Widget").namespace == "A"
        assert reg.find_structured_type_for_type("A.B.Widget").type == "A.B.Widget"

    def test_longest_namespace_wins_regardless_of_order(self):
        reg = SchemaRegistry()
        reg.register_schema({"namespace": "A.B", "entities": [{"name": "Widget"}]})
        reg.register_schema({"namespace": "A", "entities": [{"name": "Widget"}]})
        assert reg.find_schema_for_type("A.B.Widget").namespace == "A.B"

    def test_alias_resolves(self, registry):
        assert registry.find_parser_for_type("self.Person") is registry.find_parser_for_type("Acme.Person")
        assert registry.find_enum_type_for_type("self.Color").name == "Color"

    def test_collection_type_names(self, registry):
        assert strip_collection("Collection(Acme.Person)") == "Acme.Person"
        assert registry.find_parser_for_type("Collection(Acme.Person)").type == "Acme.Person"
        assert registry.find_parser_for_type("Collection(Edm.String)") is EDM_PARSERS["Edm.String"]

    def test_priority_enum_structured_callable(self, registry):
        assert isinstance(registry.find_parser_for_type("Acme.Color"), EnumTypeParser)
        assert isinstance(registry.find_parser_for_type("Acme.Person"), StructuredTypeParser)
        assert registry.find_parser_for_type("Acme.GetTopPerson").return_type == "Acme.Person"

    def test_miss_returns_none_parser(self, registry):
        assert registry.find_parser_for_type("Nowhere.Thing") is NONE_PARSER
        assert registry.find_parser_for_type("Edm.Unknown") is NONE_PARSER
        assert registry.find_schema_for_type("Nowhere.Thing") is None

    def test_custom_primitive_parser_wins(self, schema_config):
        reg = SchemaRegistry({"Edm.String": NONE_PARSER})
        reg.register_schema(schema_config)
        reg.configure()
        assert reg.find_parser_for_type("Edm.String") is NONE_PARSER

    def test_by_name(self, registry):
        assert registry.find_callable_by_name("GetTopPerson").path == "TopPerson"
        assert registry.find_entity_set_by_name("Me").singleton is True
        assert registry.find_structured_type_by_name("Employee").base == "Acme.Person"
        assert registry.find_enum_type_by_name("Status").members == {"Active": 0, "Retired": 1}
        assert registry.find_entity_set_for_entity_type("Acme.Person").name == "People"

    def test_entity_set_for_type(self, registry):
        people = registry.find_entity_set_for_type("Acme.People")
        assert people.entity_type == "Acme.Person"
        assert people.binding_for("friends") == "People"


class TestSchemaElements:
    """Tests for schema element wrappers."""

    def test_callable_paths(self, registry):
        assert registry.find_callable_by_name("GetTopPerson").path == "TopPerson"
        assert registry.find_callable_by_name("ShareTrip").path == "Acme.ShareTrip"
        assert registry.find_callable_by_name("ResetData").path == "ResetData"
        assert registry.find_callable_by_name("ShareTrip").is_action()
        assert registry.find_callable_by_name("GetNearby").composable is True

    def test_structured_type_helpers(self, registry):
        employee = registry.find_structured_type_for_type("Acme.Employee")
        assert employee.parent.type == "Acme.Person"
        assert not employee.is_complex_type()
        assert registry.find_structured_type_for_type("Acme.Address").is_complex_type()
        assert employee.resolve_key({"id": 4, "salary": 1}) == 4

    def test_enum_member(self, registry):
        color = registry.find_enum_type_for_type("Acme.Color")
        assert color.flags is True
        assert color.member(4) == "Blue"
        assert color.member(99) is None
