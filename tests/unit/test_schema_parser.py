"""
Unit tests for the CSDL metadata parser.
"""
import pytest

from odata_mcp.core.errors import SchemaError, UnresolvedReferenceWarning, ValidationError
from odata_mcp.schema.model import TypeKind
from odata_mcp.schema.parser import MetadataParser, parse_file, parse_metadata


def _document(schema_body: str, namespace: str = "Test") -> str:
    return (
        '<edmx:Edmx Version="4.0" xmlns:edmx="http://docs.oasis-open.org/odata/ns/edmx">'
        '<edmx:DataServices>'
        f'<Schema Namespace="{namespace}" xmlns="http://docs.oasis-open.org/odata/ns/edm">'
        f'{schema_body}'
        '</Schema>'
        '</edmx:DataServices>'
        '</edmx:Edmx>'
    )


class TestParseNorthwind:
    """Tests against the Northwind-style document."""

    def test_types_are_indexed_by_qualified_name(self, northwind_model):
        assert list(northwind_model.entity_types) == [
            "NorthwindModel.AuditLog",
            "NorthwindModel.Category",
            "NorthwindModel.Product",
        ]
        assert list(northwind_model.complex_types) == ["NorthwindModel.Dimensions"]
        assert list(northwind_model.enum_types) == ["NorthwindModel.ProductStatus"]

    def test_namespaces_and_aliases(self, northwind_model):
        assert northwind_model.namespaces == ("NorthwindModel",)
        assert dict(northwind_model.aliases) == {"NW": "NorthwindModel"}
        assert northwind_model.version == "4.0"

    def test_key_and_properties(self, northwind_model):
        product = northwind_model.get_entity_type("NorthwindModel.Product")

        assert product.key == ("ProductID",)
        assert [p.name for p in product.properties] == [
            "ProductID", "ProductName", "UnitPrice", "Discontinued", "Status", "Dimensions", "Tags"
        ]

    def test_key_property_is_not_nullable(self, northwind_model):
        product = northwind_model.get_entity_type("NorthwindModel.Product")

        # Declared without Nullable, which defaults to true
        assert product.get_property("ProductID").nullable is False

    def test_property_facets(self, northwind_model):
        product = northwind_model.get_entity_type("NorthwindModel.Product")

        name = product.get_property("ProductName")
        assert name.max_length == 40
        assert name.nullable is False

        price = product.get_property("UnitPrice")
        assert price.precision == 19
        assert price.scale == 4

        assert product.get_property("Discontinued").default_value == "false"

    def test_alias_qualified_reference_resolves(self, northwind_model):
        status = northwind_model.get_entity_type("NW.Product").get_property("Status")

        assert status.type_name == "NorthwindModel.ProductStatus"
        assert status.kind is TypeKind.ENUM

    def test_collection_property(self, northwind_model):
        tags = northwind_model.get_entity_type("NorthwindModel.Product").get_property("Tags")

        assert tags.is_collection is True
        assert tags.type_name == "Edm.String"
        assert tags.kind is TypeKind.PRIMITIVE

    def test_navigation_properties(self, northwind_model):
        category = northwind_model.get_entity_type("NorthwindModel.Category")
        products = category.get_navigation_property("Products")

        assert products.target_type == "NorthwindModel.Product"
        assert products.is_collection is True
        assert products.partner == "Category"
        assert products.is_resolved

        product = northwind_model.get_entity_type("NorthwindModel.Product")
        assert product.get_navigation_property("Category").is_collection is False

    def test_entity_sets_and_bindings(self, northwind_model):
        container = northwind_model.containers["NorthwindModel.Container"]

        assert [s.name for s in container.entity_sets] == ["AuditLogs", "Categories", "Products"]
        categories = container.get_entity_set("Categories")
        assert categories.entity_type == "NorthwindModel.Category"
        assert categories.binding_target("Products") == "Products"

    def test_operations(self, northwind_model):
        discontinue = northwind_model.bound_operations("NorthwindModel.Product")
        assert [op.name for op in discontinue] == ["Discontinue"]
        assert discontinue[0].kind == "action"
        assert [p.name for p in discontinue[0].unbound_parameters] == ["Reason"]

        top = northwind_model.find_operation("NorthwindModel.TopProducts")
        assert top.kind == "function"
        assert top.return_type == "NorthwindModel.Product"
        assert top.return_is_collection is True

    def test_operation_imports(self, northwind_model):
        container = northwind_model.containers["NorthwindModel.Container"]

        assert len(container.operation_imports) == 1
        top = container.operation_imports[0]
        assert top.kind == "function"
        assert top.operation == "NorthwindModel.TopProducts"
        assert top.entity_set == "Products"

    def test_no_warnings(self, northwind_model):
        assert northwind_model.warnings == ()

    def test_key_properties_resolve(self, northwind_model):
        product = northwind_model.get_entity_type("NorthwindModel.Product")
        audit = northwind_model.get_entity_type("NorthwindModel.AuditLog")

        assert [p.name for p in northwind_model.key_properties(product)] == ["ProductID"]
        assert northwind_model.key_properties(audit) == []


class TestParseLegacy:
    """Tests against a CSDL v2 document."""

    def test_version(self, legacy_model):
        assert legacy_model.version == "1.0"
        assert legacy_model.namespaces == ("ODataDemo",)

    def test_datetime_is_primitive(self, legacy_model):
        product = legacy_model.get_entity_type("ODataDemo.Product")

        assert product.get_property("ReleaseDate").kind is TypeKind.PRIMITIVE

    def test_navigation_from_association(self, legacy_model):
        product = legacy_model.get_entity_type("ODataDemo.Product")
        supplier = legacy_model.get_entity_type("ODataDemo.Supplier")

        to_supplier = product.get_navigation_property("Supplier")
        assert to_supplier.target_type == "ODataDemo.Supplier"
        assert to_supplier.is_collection is False
        assert to_supplier.nullable is True

        to_products = supplier.get_navigation_property("Products")
        assert to_products.target_type == "ODataDemo.Product"
        assert to_products.is_collection is True

    def test_function_imports_become_operations(self, legacy_model):
        by_rating = legacy_model.find_operation("ODataDemo.GetProductsByRating")
        reset = legacy_model.find_operation("ODataDemo.ResetData")

        assert by_rating.kind == "function"
        assert by_rating.return_is_collection is True
        assert [p.name for p in by_rating.parameters] == ["rating"]
        assert reset.kind == "action"
        assert reset.return_type is None

    def test_legacy_imports_reference_synthesized_operations(self, legacy_model):
        container = legacy_model.containers["ODataDemo.DemoService"]

        assert [i.name for i in container.operation_imports] == ["GetProductsByRating", "ResetData"]
        assert [i.operation for i in container.operation_imports] == [
            "ODataDemo.GetProductsByRating", "ODataDemo.ResetData"
        ]


class TestMalformedDocuments:
    """Tests for fatal parse errors."""

    @pytest.mark.parametrize("text", ["", "   ", b""])
    def test_empty_document(self, text):
        with pytest.raises(SchemaError, match="empty"):
            MetadataParser().parse(text)

    def test_not_well_formed(self):
        with pytest.raises(SchemaError) as exc_info:
            MetadataParser().parse("<edmx:Edmx><Schema>")

        assert "line" in exc_info.value.data
        assert "column" in exc_info.value.data

    def test_wrong_root(self):
        with pytest.raises(SchemaError, match="edmx:Edmx"):
            MetadataParser().parse("<root/>")

    def test_no_schema(self):
        text = '<edmx:Edmx xmlns:edmx="http://docs.oasis-open.org/odata/ns/edmx"><edmx:DataServices/></edmx:Edmx>'

        with pytest.raises(ValidationError, match="no Schema"):
            MetadataParser().parse(text)

    def test_no_container(self):
        with pytest.raises(ValidationError, match="EntityContainer"):
            MetadataParser().parse(_document('<EntityType Name="A"/>'))

    def test_duplicate_type(self):
        body = (
            '<EntityType Name="A"/>'
            '<ComplexType Name="A"/>'
            '<EntityContainer Name="C"/>'
        )

        with pytest.raises(ValidationError, match="Duplicate type name 'Test.A'"):
            MetadataParser().parse(_document(body))

    def test_entity_set_with_undeclared_type(self):
        body = (
            '<EntityContainer Name="C">'
            '<EntitySet Name="Things" EntityType="Test.Missing"/>'
            '</EntityContainer>'
        )

        with pytest.raises(ValidationError, match="undeclared entity type"):
            MetadataParser().parse(_document(body))

    def test_schema_without_namespace(self):
        text = (
            '<edmx:Edmx xmlns:edmx="http://docs.oasis-open.org/odata/ns/edmx"><edmx:DataServices>'
            '<Schema xmlns="http://docs.oasis-open.org/odata/ns/edm"><EntityContainer Name="C"/></Schema>'
            '</edmx:DataServices></edmx:Edmx>'
        )

        with pytest.raises(ValidationError, match="Namespace"):
            MetadataParser().parse(text)


class TestUnresolvedReferences:
    """Unresolved references degrade to warnings instead of failing."""

    def test_unknown_property_type_records_warning(self):
        body = (
            '<EntityType Name="A">'
            '<Key><PropertyRef Name="Id"/></Key>'
            '<Property Name="Id" Type="Edm.Int32"/>'
            '<Property Name="Shape" Type="Test.Missing"/>'
            '</EntityType>'
            '<EntityContainer Name="C"><EntitySet Name="As" EntityType="Test.A"/></EntityContainer>'
        )

        model = parse_metadata(_document(body))

        shape = model.get_entity_type("Test.A").get_property("Shape")
        assert shape.kind is TypeKind.UNKNOWN
        assert model.warnings == (UnresolvedReferenceWarning("Test.A", "Shape", "Test.Missing"),)

    def test_unknown_edm_primitive_records_warning(self):
        body = (
            '<ComplexType Name="B"><Property Name="X" Type="Edm.Nonsense"/></ComplexType>'
            '<EntityContainer Name="C"/>'
        )

        model = parse_metadata(_document(body))

        assert len(model.warnings) == 1
        assert model.warnings[0].type_name == "Edm.Nonsense"

    def test_unresolved_navigation_target(self):
        body = (
            '<EntityType Name="A">'
            '<Key><PropertyRef Name="Id"/></Key>'
            '<Property Name="Id" Type="Edm.Int32"/>'
            '<NavigationProperty Name="Owner" Type="Test.Ghost"/>'
            '</EntityType>'
            '<EntityContainer Name="C"><EntitySet Name="As" EntityType="Test.A"/></EntityContainer>'
        )

        model = parse_metadata(_document(body))

        owner = model.get_entity_type("Test.A").get_navigation_property("Owner")
        assert owner.is_resolved is False
        assert [w.member for w in model.warnings] == ["Owner"]

    def test_missing_key_property_records_warning(self):
        body = (
            '<EntityType Name="A">'
            '<Key><PropertyRef Name="Code"/></Key>'
            '<Property Name="Id" Type="Edm.Int32"/>'
            '</EntityType>'
            '<EntityContainer Name="C"><EntitySet Name="As" EntityType="Test.A"/></EntityContainer>'
        )

        model = parse_metadata(_document(body))

        assert [w.member for w in model.warnings] == ["Code"]
        assert model.key_properties(model.get_entity_type("Test.A")) == []


class TestInheritance:
    """Tests for base types."""

    BODY = (
        '<EntityType Name="Base">'
        '<Key><PropertyRef Name="Id"/></Key>'
        '<Property Name="Id" Type="Edm.Guid"/>'
        '</EntityType>'
        '<EntityType Name="Derived" BaseType="Test.Base">'
        '<Property Name="Extra" Type="Edm.String"/>'
        '</EntityType>'
        '<EntityContainer Name="C"><EntitySet Name="Things" EntityType="Test.Derived"/></EntityContainer>'
    )

    def test_key_is_inherited(self):
        model = parse_metadata(_document(self.BODY))
        derived = model.get_entity_type("Test.Derived")

        assert model.key_of(derived) == ("Id",)
        assert [p.name for p in model.all_properties(derived)] == ["Id", "Extra"]
        assert [p.name for p in model.key_properties(derived)] == ["Id"]

    def test_base_chain_stops_on_cycle(self):
        body = (
            '<EntityType Name="A" BaseType="Test.B"/>'
            '<EntityType Name="B" BaseType="Test.A"/>'
            '<EntityContainer Name="C"/>'
        )
        model = parse_metadata(_document(body))

        chain = model.base_chain(model.get_entity_type("Test.A"))

        assert [t.name for t in chain] == ["A", "B"]


class TestStructuralEquality:
    """Parsing is deterministic and independent of declaration order."""

    def test_parse_twice_is_equal(self, northwind_metadata):
        assert parse_metadata(northwind_metadata) == parse_metadata(northwind_metadata)

    def test_reordered_declarations_are_equal(self):
        first = (
            '<EntityType Name="A"><Key><PropertyRef Name="Id"/></Key><Property Name="Id" Type="Edm.Int32"/></EntityType>'
            '<EntityType Name="B"><Key><PropertyRef Name="Id"/></Key><Property Name="Id" Type="Edm.Int32"/></EntityType>'
            '<EntityContainer Name="C">'
            '<EntitySet Name="As" EntityType="Test.A"/><EntitySet Name="Bs" EntityType="Test.B"/>'
            '</EntityContainer>'
        )
        second = (
            '<EntityContainer Name="C">'
            '<EntitySet Name="Bs" EntityType="Test.B"/><EntitySet Name="As" EntityType="Test.A"/>'
            '</EntityContainer>'
            '<EntityType Name="B"><Key><PropertyRef Name="Id"/></Key><Property Name="Id" Type="Edm.Int32"/></EntityType>'
            '<EntityType Name="A"><Key><PropertyRef Name="Id"/></Key><Property Name="Id" Type="Edm.Int32"/></EntityType>'
        )

        assert parse_metadata(_document(first)) == parse_metadata(_document(second))


def test_parse_file(tmp_path, simple_metadata):
    path = tmp_path / "metadata.xml"
    path.write_text(simple_metadata, encoding="utf-8")

    model = parse_file(path)

    assert list(model.entity_types) == ["Shop.Product"]


def test_parse_file_missing(tmp_path):
    with pytest.raises(OSError):
        parse_file(tmp_path / "missing.xml")
