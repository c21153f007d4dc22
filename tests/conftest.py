"""
Pytest configuration and shared fixtures for OData MCP router tests.
"""
import pytest

from odata_mcp.schema.model import SchemaModel
from odata_mcp.schema.parser import MetadataParser


NORTHWIND_METADATA = """<?xml version="1.0" encoding="utf-8"?>
<edmx:Edmx Version="4.0" xmlns:edmx="http://docs.oasis-open.org/odata/ns/edmx">
  <edmx:DataServices>
    <Schema Namespace="NorthwindModel" Alias="NW" xmlns="http://docs.oasis-open.org/odata/ns/edm">
      <EntityType Name="Category">
        <Key>
          <PropertyRef Name="CategoryID"/>
        </Key>
        <Property Name="CategoryID" Type="Edm.Int32" Nullable="false"/>
        <Property Name="Name" Type="Edm.String" Nullable="false" MaxLength="15"/>
        <Property Name="Description" Type="Edm.String"/>
        <Property Name="Picture" Type="Edm.Binary"/>
        <NavigationProperty Name="Products" Type="Collection(NorthwindModel.Product)" Partner="Category"/>
      </EntityType>
      <EntityType Name="Product">
        <Key>
          <PropertyRef Name="ProductID"/>
        </Key>
        <Property Name="ProductID" Type="Edm.Int32"/>
        <Property Name="ProductName" Type="Edm.String" Nullable="false" MaxLength="40"/>
        <Property Name="UnitPrice" Type="Edm.Decimal" Precision="19" Scale="4"/>
        <Property Name="Discontinued" Type="Edm.Boolean" Nullable="false" DefaultValue="false"/>
        <Property Name="Status" Type="NW.ProductStatus"/>
        <Property Name="Dimensions" Type="NorthwindModel.Dimensions"/>
        <Property Name="Tags" Type="Collection(Edm.String)"/>
        <NavigationProperty Name="Category" Type="NorthwindModel.Category" Partner="Products"/>
      </EntityType>
      <EntityType Name="AuditLog">
        <Property Name="Message" Type="Edm.String"/>
      </EntityType>
      <ComplexType Name="Dimensions">
        <Property Name="Width" Type="Edm.Double" Nullable="false"/>
        <Property Name="Height" Type="Edm.Double"/>
      </ComplexType>
      <EnumType Name="ProductStatus">
        <Member Name="Active"/>
        <Member Name="Retired"/>
      </EnumType>
      <Action Name="Discontinue" IsBound="true">
        <Parameter Name="bindingParameter" Type="NorthwindModel.Product"/>
        <Parameter Name="Reason" Type="Edm.String" Nullable="false"/>
        <ReturnType Type="NorthwindModel.Product"/>
      </Action>
      <Function Name="TopProducts">
        <Parameter Name="Count" Type="Edm.Int32" Nullable="false"/>
        <ReturnType Type="Collection(NorthwindModel.Product)"/>
      </Function>
      <EntityContainer Name="Container">
        <EntitySet Name="Products" EntityType="NorthwindModel.Product">
          <NavigationPropertyBinding Path="Category" Target="Categories"/>
        </EntitySet>
        <EntitySet Name="Categories" EntityType="NW.Category">
          <NavigationPropertyBinding Path="Products" Target="Products"/>
        </EntitySet>
        <EntitySet Name="AuditLogs" EntityType="NorthwindModel.AuditLog"/>
        <FunctionImport Name="TopProducts" Function="NorthwindModel.TopProducts" EntitySet="Products"/>
      </EntityContainer>
    </Schema>
  </edmx:DataServices>
</edmx:Edmx>
"""

LEGACY_METADATA = """<?xml version="1.0" encoding="utf-8"?>
<edmx:Edmx Version="1.0" xmlns:edmx="http://schemas.microsoft.com/ado/2007/06/edmx">
  <edmx:DataServices xmlns:m="http://schemas.microsoft.com/ado/2007/08/dataservices/metadata" m:DataServiceVersion="2.0">
    <Schema Namespace="ODataDemo" xmlns="http://schemas.microsoft.com/ado/2008/09/edm">
      <EntityType Name="Product">
        <Key>
          <PropertyRef Name="ID"/>
        </Key>
        <Property Name="ID" Type="Edm.Int32" Nullable="false"/>
        <Property Name="Name" Type="Edm.String" Nullable="true"/>
        <Property Name="ReleaseDate" Type="Edm.DateTime" Nullable="false"/>
        <NavigationProperty Name="Supplier" Relationship="ODataDemo.Product_Supplier_Supplier_Products" FromRole="Product_Supplier" ToRole="Supplier_Products"/>
      </EntityType>
      <EntityType Name="Supplier">
        <Key>
          <PropertyRef Name="ID"/>
        </Key>
        <Property Name="ID" Type="Edm.Int32" Nullable="false"/>
        <Property Name="Name" Type="Edm.String"/>
        <NavigationProperty Name="Products" Relationship="ODataDemo.Product_Supplier_Supplier_Products" FromRole="Supplier_Products" ToRole="Product_Supplier"/>
      </EntityType>
      <Association Name="Product_Supplier_Supplier_Products">
        <End Role="Product_Supplier" Type="ODataDemo.Product" Multiplicity="*"/>
        <End Role="Supplier_Products" Type="ODataDemo.Supplier" Multiplicity="0..1"/>
      </Association>
      <EntityContainer Name="DemoService" m:IsDefaultEntityContainer="true">
        <EntitySet Name="Products" EntityType="ODataDemo.Product"/>
        <EntitySet Name="Suppliers" EntityType="ODataDemo.Supplier"/>
        <AssociationSet Name="Products_Supplier_Suppliers" Association="ODataDemo.Product_Supplier_Supplier_Products">
          <End Role="Product_Supplier" EntitySet="Products"/>
          <End Role="Supplier_Products" EntitySet="Suppliers"/>
        </AssociationSet>
        <FunctionImport Name="GetProductsByRating" EntitySet="Products" ReturnType="Collection(ODataDemo.Product)" m:HttpMethod="GET">
          <Parameter Name="rating" Type="Edm.Int32" Mode="In"/>
        </FunctionImport>
        <FunctionImport Name="ResetData" m:HttpMethod="POST"/>
      </EntityContainer>
    </Schema>
  </edmx:DataServices>
</edmx:Edmx>
"""

SIMPLE_METADATA = """<edmx:Edmx Version="4.0" xmlns:edmx="http://docs.oasis-open.org/odata/ns/edmx">
  <edmx:DataServices>
    <Schema Namespace="Shop" xmlns="http://docs.oasis-open.org/odata/ns/edm">
      <EntityType Name="Product">
        <Key><PropertyRef Name="Id"/></Key>
        <Property Name="Id" Type="Edm.Int32" Nullable="false"/>
        <Property Name="Name" Type="Edm.String" Nullable="false"/>
        <Property Name="Price" Type="Edm.Decimal"/>
      </EntityType>
      <EntityContainer Name="Container">
        <EntitySet Name="Products" EntityType="Shop.Product"/>
      </EntityContainer>
    </Schema>
  </edmx:DataServices>
</edmx:Edmx>
"""


@pytest.fixture
def northwind_metadata() -> str:
    """Northwind-style CSDL v4 document with navigation, operations and a keyless type."""
    return NORTHWIND_METADATA


@pytest.fixture
def legacy_metadata() -> str:
    """CSDL v2 document using associations and inline function imports."""
    return LEGACY_METADATA


@pytest.fixture
def simple_metadata() -> str:
    """One entity set with an integer key."""
    return SIMPLE_METADATA


@pytest.fixture
def northwind_model() -> SchemaModel:
    return MetadataParser().parse(NORTHWIND_METADATA)


@pytest.fixture
def legacy_model() -> SchemaModel:
    return MetadataParser().parse(LEGACY_METADATA)


@pytest.fixture
def sample_config_dict() -> dict:
    """Sample configuration dictionary for testing."""
    return {
        "namespaces": {
            "northwind": {
                "prefix": "northwind",
                "metadataText": NORTHWIND_METADATA,
                "description": "Northwind sample service"
            },
            "shop": {
                "prefix": "api/shop",
                "metadataText": SIMPLE_METADATA,
                "mountPath": "/shop-mcp"
            }
        },
        "generation": {
            "maxToolCount": 50,
            "namingConvention": "as_is"
        }
    }
