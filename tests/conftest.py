"""
Pytest configuration and shared fixtures.
"""

import pytest
from typing import Any, Dict, List

from odata_engine import ODataApi
from odata_engine.resources.responses import ODataResponse


SERVICE_ROOT = "https://services.example.com/Acme/"


def acme_schema() -> Dict[str, Any]:
    """Acme service description in camelCase configuration form."""
    return {
        "namespace": "Acme",
        "alias": "self",
        "enums": [
            {"name": "Color", "isFlags": True, "members": {"None": 0, "Red": 1, "Green": 2, "Blue": 4}},
            {"name": "Status", "members": {"Active": 0, "Retired": 1}},
        ],
        "entities": [
            {
                "name": "Person",
                "fields": {
                    "id": {"type": "Edm.Int32", "key": True, "nullable": False},
                    "name": {"type": "Edm.String", "maxLength": 80},
                    "favoriteColor": {"type": "Acme.Color"},
                    "status": {"type": "Acme.Status"},
                    "address": {"type": "Acme.Address"},
                    "friends": {"type": "Acme.Person", "collection": True, "navigation": True},
                    "manager": {"type": "Acme.Person", "navigation": True},
                },
            },
            {
                "name": "Employee",
                "base": "Acme.Person",
                "fields": {
                    "salary": {"type": "Edm.Decimal", "scale": 2},
                    "hiredAt": {"type": "Edm.DateTimeOffset"},
                },
            },
            {
                "name": "Address",
                "fields": {
                    "street": {"type": "Edm.String"},
                    "city": {"type": "Edm.String"},
                },
            },
            {
                "name": "OrderLine",
                "fields": {
                    "orderId": {"type": "Edm.Int32", "key": True},
                    "lineNo": {"type": "Edm.Int32", "key": True},
                    "product": {"type": "Edm.String"},
                },
            },
            {
                "name": "Airport",
                "fields": {
                    "code": {"type": "Edm.String", "key": True, "ref": "location/code"},
                    "name": {"type": "Edm.String"},
                },
            },
        ],
        "callables": [
            {
                "name": "GetTopPerson",
                "kind": "function",
                "path": "TopPerson",
                "returnType": {"type": "Acme.Person"},
            },
            {
                "name": "GetNearby",
                "kind": "function",
                "composable": True,
                "parameters": {
                    "lat": {"type": "Edm.Double"},
                    "lon": {"type": "Edm.Double"},
                    "city": {"type": "Edm.String"},
                },
                "returnType": {"type": "Acme.Person", "collection": True},
            },
            {
                "name": "CountFriends",
                "kind": "function",
                "bound": True,
                "returnType": {"type": "Edm.Int32"},
            },
            {
                "name": "ShareTrip",
                "kind": "action",
                "bound": True,
                "parameters": {
                    "userName": {"type": "Edm.String"},
                    "color": {"type": "Acme.Color"},
                },
            },
            {
                "name": "ResetData",
                "kind": "action",
            },
        ],
        "containers": [
            {
                "name": "Container",
                "entitySets": [
                    {
                        "name": "People",
                        "entityType": "Acme.Person",
                        "navigationPropertyBindings": {"friends": "People", "manager": "People"},
                    },
                    {"name": "OrderLines", "entityType": "Acme.OrderLine"},
                    {"name": "Airports", "entityType": "Acme.Airport"},
                    {"name": "Me", "entityType": "Acme.Person", "singleton": True},
                ],
            }
        ],
    }


class FakeTransport:
    """
    Async transport double.

    Records every request and answers from a queue of responses (or
    exceptions); once the queue is empty the last answer is repeated.
    """

    def __init__(self, *answers: Any):
        self.answers: List[Any] = list(answers) or [ODataResponse(status=200, body=None)]
        self.requests: List[Any] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    @property
    def last(self):
        return self.requests[-1]

    async def __call__(self, request):
        self.requests.append(request)
        answer = self.answers.pop(0) if len(self.answers) > 1 else self.answers[0]
        if isinstance(answer, BaseException):
            raise answer
        return answer


@pytest.fixture
def schema_config():
    """Fresh Acme schema definition."""
    return acme_schema()


@pytest.fixture
def transport():
    """Transport answering with an empty 200 response."""
    return FakeTransport()


@pytest.fixture
def make_api(schema_config):
    """Factory for configured ODataApi instances over the Acme schema."""

    def _make(transport=None, **config):
        api = ODataApi(
            {"serviceRootUrl": SERVICE_ROOT, "schemas": [schema_config], **config},
            transport=transport,
        )
        return api.configure()

    return _make


@pytest.fixture
def api(make_api, transport):
    """Configured v4 API wired to the default fake transport."""
    return make_api(transport)


@pytest.fixture
def sample_odata_response():
    """Sample OData v2 response."""
    return {
        "d": {
            "results": [
                {"id": 1, "name": "Ann", "__metadata": {"type": "Acme.Person", "etag": "W/\"1\""}},
                {"id": 2, "name": "Bob", "__metadata": {"type": "Acme.Person"}},
            ],
            "__count": "2",
            "__next": "https://services.example.com/Acme/People?$skiptoken=abc",
        }
    }


@pytest.fixture
def sample_metadata_xml():
    """Sample OData v2 $metadata XML."""
    return """<?xml version="1.0" encoding="utf-8"?>
<edmx:Edmx Version="1.0" xmlns:edmx="http://schemas.microsoft.com/ado/2007/06/edmx">
  <edmx:DataServices m:DataServiceVersion="2.0" xmlns:m="http://schemas.microsoft.com/ado/2007/08/dataservices/metadata">
    <Schema Namespace="TestService" xmlns="http://schemas.microsoft.com/ado/2008/09/edm">
      <EntityType Name="TestEntity">
        <Key>
          <PropertyRef Name="ID"/>
        </Key>
        <Property Name="ID" Type="Edm.String" Nullable="false"/>
        <Property Name="Name" Type="Edm.String" MaxLength="40"/>
        <Property Name="Status" Type="Edm.String"/>
        <Property Name="CreatedAt" Type="Edm.DateTime"/>
        <NavigationProperty Name="Items" Relationship="TestService.Entity_Items" FromRole="Entity" ToRole="Items"/>
      </EntityType>
      <EntityType Name="TestItem">
        <Key>
          <PropertyRef Name="ItemID"/>
        </Key>
        <Property Name="ItemID" Type="Edm.Int32" Nullable="false"/>
      </EntityType>
      <Association Name="Entity_Items">
        <End Type="TestService.TestEntity" Multiplicity="1" Role="Entity"/>
        <End Type="TestService.TestItem" Multiplicity="*" Role="Items"/>
      </Association>
      <EntityContainer Name="TestService" m:IsDefaultEntityContainer="true">
        <EntitySet Name="TestEntities" EntityType="TestService.TestEntity"/>
        <EntitySet Name="TestItems" EntityType="TestService.TestItem"/>
        <FunctionImport Name="Release" ReturnType="TestService.TestEntity" EntitySet="TestEntities" m:HttpMethod="POST">
          <Parameter Name="ID" Type="Edm.String" Mode="In"/>
        </FunctionImport>
      </EntityContainer>
    </Schema>
  </edmx:DataServices>
</edmx:Edmx>"""


@pytest.fixture
def sample_metadata_v4_xml():
    """Sample OData v4 $metadata XML."""
    return """<?xml version="1.0" encoding="utf-8"?>
<edmx:Edmx Version="4.0" xmlns:edmx="http://docs.oasis-open.org/odata/ns/edmx">
  <edmx:DataServices>
    <Schema Namespace="Trippin" xmlns="http://docs.oasis-open.org/odata/ns/edm">
      <EnumType Name="Feature" IsFlags="true">
        <Member Name="Feature1" Value="1"/>
        <Member Name="Feature2" Value="2"/>
      </EnumType>
      <EntityType Name="Person">
        <Key>
          <PropertyRef Name="UserName"/>
        </Key>
        <Property Name="UserName" Type="Edm.String" Nullable="false"/>
        <Property Name="Emails" Type="Collection(Edm.String)"/>
        <Property Name="Features" Type="Trippin.Feature"/>
        <NavigationProperty Name="Friends" Type="Collection(Trippin.Person)"/>
      </EntityType>
      <EntityType Name="Employee" BaseType="Trippin.Person">
        <Property Name="Cost" Type="Edm.Int64"/>
      </EntityType>
      <ComplexType Name="Location">
        <Property Name="Address" Type="Edm.String"/>
      </ComplexType>
      <Function Name="GetFavoriteAirline" IsBound="true" IsComposable="true">
        <Parameter Name="person" Type="Trippin.Person"/>
        <ReturnType Type="Trippin.Airline"/>
      </Function>
      <Action Name="ResetDataSource"/>
      <EntityContainer Name="Container">
        <EntitySet Name="People" EntityType="Trippin.Person">
          <NavigationPropertyBinding Path="Friends" Target="People"/>
        </EntitySet>
        <Singleton Name="Me" Type="Trippin.Person"/>
        <ActionImport Name="ResetDataSource" Action="Trippin.ResetDataSource"/>
      </EntityContainer>
    </Schema>
  </edmx:DataServices>
</edmx:Edmx>"""
