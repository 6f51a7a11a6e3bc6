"""
Typed structures passed between the custom resource components.

Raw dicts only exist at the edges (the Lambda event and the secret payload);
everything inside the processor works with these models.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr

REQUEST_CREATE = "Create"
REQUEST_UPDATE = "Update"
REQUEST_DELETE = "Delete"


class LifecycleEvent(BaseModel):
    """One CloudFormation custom resource request"""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    request_type: str = Field(..., alias="RequestType")
    resource_properties: Dict[str, Any] = Field(default_factory=dict, alias="ResourceProperties")
    physical_resource_id: str = Field("", alias="PhysicalResourceId")

    # Envelope fields, only needed to answer CloudFormation
    request_id: str = Field("", alias="RequestId")
    stack_id: str = Field("", alias="StackId")
    logical_resource_id: str = Field("", alias="LogicalResourceId")
    resource_type: str = Field("", alias="ResourceType")
    response_url: Optional[str] = Field(None, alias="ResponseURL")

    @classmethod
    def from_lambda_event(cls, event: Dict[str, Any]) -> "LifecycleEvent":
        return cls.model_validate(event)

    @classmethod
    def envelope_of(cls, event: Any) -> "LifecycleEvent":
        """
        Best-effort event for answering CloudFormation when ``event`` does not
        validate: string envelope fields are kept, everything else is dropped.
        """
        raw = event if isinstance(event, dict) else {}

        def text(key: str) -> str:
            value = raw.get(key)
            return value if isinstance(value, str) else ""

        return cls(
            RequestType=text("RequestType"),
            PhysicalResourceId=text("PhysicalResourceId"),
            RequestId=text("RequestId"),
            StackId=text("StackId"),
            LogicalResourceId=text("LogicalResourceId"),
            ResourceType=text("ResourceType"),
            ResponseURL=text("ResponseURL") or None,
        )

    def log_view(self) -> Dict[str, Any]:
        """The event as it may be logged: the pre-signed ResponseURL is left out"""
        return self.model_dump(by_alias=True, exclude={"response_url"})


class CredentialSet(BaseModel):
    """
    Database credentials decoded from a Secrets Manager payload.

    RDS managed secrets carry more keys (engine, dbname, ...); those are
    ignored. The password is a SecretStr so it never shows up in a repr.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    host: str
    port: int
    username: str
    password: SecretStr


class ValidatedParameters(BaseModel):
    """The three values a Create request needs, after validation"""

    model_config = ConfigDict(frozen=True)

    database: str
    sql_query: str
    secret_id: str


class CustomResourceResponse(BaseModel):
    """What the processor hands back for one event"""

    physical_resource_id: str
    data: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return not self.error
