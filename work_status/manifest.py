"""Representation of Work records and the status fed back from a spoke cluster.

A Work holds a list of resource manifests deployed to a spoke cluster along
with the rules that select which status values should be reported back to the
hub. The status is rebuilt on every sync from the live spoke objects.
"""

from dataclasses import dataclass, field
from enum import StrEnum
import logging
from typing import Any, ClassVar, cast

from mashumaro import DataClassDictMixin, field_options
from mashumaro.codecs.yaml import yaml_decode, yaml_encode
from mashumaro.config import BaseConfig

from .exceptions import InputException, ResourceMetaError

__all__ = [
    "NamedResource",
    "GroupVersionKind",
    "ManifestResourceMeta",
    "Manifest",
    "ValueType",
    "FieldValue",
    "FeedbackValue",
    "FeedbackResult",
    "JsonPath",
    "FeedbackRuleType",
    "FeedbackRule",
    "ResourceIdentifier",
    "ManifestConfig",
    "ConditionStatus",
    "Condition",
    "ManifestCondition",
    "ManifestResourceStatus",
    "WorkStatus",
    "WorkSpec",
    "Work",
]

_LOGGER = logging.getLogger(__name__)


WORK_DOMAIN = "multicluster.x-k8s.io"
WORK_KIND = "Work"
DEFAULT_NAMESPACE = "default"


def parse_api_version(api_version: str) -> tuple[str, str]:
    """Split an apiVersion into group and version, the core group is empty."""
    if not api_version:
        raise InputException("Invalid empty apiVersion")
    group, sep, version = api_version.rpartition("/")
    if sep and not group:
        raise InputException(f"Invalid apiVersion '{api_version}'")
    return group, version


@dataclass
class BaseManifest(DataClassDictMixin):
    """Base class for all manifest objects."""

    @classmethod
    def parse_yaml(cls, content: str) -> "BaseManifest":
        """Parse a serialized manifest."""
        return yaml_decode(content, cls)

    def yaml(self) -> str:
        """Return a YAML string representation of the object."""
        return yaml_encode(self, self.__class__)  # type: ignore[return-value]

    class Config(BaseConfig):
        omit_none = True
        serialize_by_alias = True


@dataclass(frozen=True, order=True)
class NamedResource:
    """Identifier for a kubernetes resource."""

    kind: str
    namespace: str | None
    name: str

    @property
    def namespaced_name(self) -> str:
        if self.namespace:
            return f"{self.namespace}/{self.name}"
        return self.name

    def __str__(self) -> str:
        """Return the kind and namespaced name concatenated as an id."""
        return f"{self.kind}/{self.namespaced_name}"


@dataclass(frozen=True, order=True)
class GroupVersionKind:
    """The type identity of a kubernetes resource."""

    group: str
    version: str
    kind: str

    @property
    def api_version(self) -> str:
        """Return the apiVersion string for the group and version."""
        if self.group:
            return f"{self.group}/{self.version}"
        return self.version

    def __str__(self) -> str:
        return f"{self.api_version}, Kind={self.kind}"


@dataclass
class ManifestResourceMeta(BaseManifest):
    """The position and coordinates of a resource deployed from a Work."""

    ordinal: int
    """The index of the manifest in the Work spec."""

    group: str
    """The API group, empty for the core group."""

    version: str
    """The API version of the resource."""

    kind: str
    """The kind of the resource."""

    name: str
    """The name of the resource."""

    namespace: str = ""
    """The namespace of the resource, empty for cluster scoped resources."""

    @property
    def gvk(self) -> GroupVersionKind:
        """Return the type identity of the resource."""
        return GroupVersionKind(self.group, self.version, self.kind)

    def same_resource(self, other: "ManifestResourceMeta") -> bool:
        """Return True if both refer to the same resource ignoring the ordinal."""
        return (
            self.group == other.group
            and self.version == other.version
            and self.kind == other.kind
            and self.name == other.name
            and self.namespace == other.namespace
        )

    def __str__(self) -> str:
        if self.namespace:
            return f"{self.kind}/{self.namespace}/{self.name}"
        return f"{self.kind}/{self.name}"


@dataclass
class Manifest(BaseManifest):
    """A raw resource description included in a Work."""

    raw: dict[str, Any] = field(default_factory=dict)
    """The raw kubernetes object."""

    def resource_meta(self, ordinal: int) -> ManifestResourceMeta:
        """Resolve the declared coordinates of the manifest.

        Raises a ResourceMetaError when any of apiVersion, kind or name is missing.
        """
        if not (api_version := self.raw.get("apiVersion")):
            raise ResourceMetaError(f"Manifest {ordinal} missing apiVersion")
        if not (kind := self.raw.get("kind")):
            raise ResourceMetaError(f"Manifest {ordinal} missing kind")
        metadata = self.raw.get("metadata") or {}
        if not (name := metadata.get("name")):
            raise ResourceMetaError(f"Manifest {ordinal} missing metadata.name")
        try:
            group, version = parse_api_version(api_version)
        except InputException as err:
            raise ResourceMetaError(f"Manifest {ordinal}: {err}") from err
        return ManifestResourceMeta(
            ordinal=ordinal,
            group=group,
            version=version,
            kind=kind,
            name=name,
            namespace=metadata.get("namespace", ""),
        )


class ValueType(StrEnum):
    """The discriminant of a FieldValue."""

    INTEGER = "Integer"
    STRING = "String"
    BOOLEAN = "Boolean"


@dataclass
class FieldValue(BaseManifest):
    """A scalar value extracted from a status document.

    Exactly one of the payload fields is set, the one matching `type`.
    """

    type: ValueType

    integer: int | None = None

    string: str | None = None

    boolean: bool | None = None

    @classmethod
    def of(cls, value: Any) -> "FieldValue":
        """Build a FieldValue from a python scalar."""
        # bool is a subclass of int so it is checked first
        if isinstance(value, bool):
            return cls(type=ValueType.BOOLEAN, boolean=value)
        if isinstance(value, int):
            return cls(type=ValueType.INTEGER, integer=value)
        if isinstance(value, str):
            return cls(type=ValueType.STRING, string=value)
        raise TypeError(f"Unsupported value type {type(value).__name__}")

    @property
    def value(self) -> int | str | bool | None:
        """Return the payload for the discriminant."""
        if self.type == ValueType.INTEGER:
            return self.integer
        if self.type == ValueType.STRING:
            return self.string
        return self.boolean


@dataclass
class FeedbackValue(BaseManifest):
    """A named value extracted from a resource status."""

    name: str

    value: FieldValue

    @classmethod
    def of(cls, name: str, value: Any) -> "FeedbackValue":
        """Build a FeedbackValue from a python scalar."""
        return cls(name=name, value=FieldValue.of(value))


@dataclass
class FeedbackResult(BaseManifest):
    """The values extracted for one manifest."""

    values: list[FeedbackValue] = field(default_factory=list)


@dataclass
class JsonPath(BaseManifest):
    """A status field to extract, selected with a path expression."""

    name: str
    """The alias name reported for the value."""

    path: str
    """The path expression, e.g. `.status.readyReplicas`."""

    version: str | None = None
    """When set, the path only applies to resources of this version."""


class FeedbackRuleType(StrEnum):
    """How the paths of a feedback rule are selected."""

    COMMON_FIELDS = "CommonFields"
    """Use the built-in paths for the resource type."""

    JSON_PATHS = "JSONPaths"
    """Use the explicit list of paths in the rule."""


@dataclass
class FeedbackRule(BaseManifest):
    """Selects which values are extracted from a resource status."""

    type: FeedbackRuleType

    json_paths: list[JsonPath] = field(
        metadata=field_options(alias="jsonPaths"), default_factory=list
    )

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "FeedbackRule":
        """Parse a FeedbackRule from a rule object."""
        if not (rule_type := doc.get("type")):
            raise InputException(f"Invalid feedback rule missing type: {doc}")
        try:
            parsed_type = FeedbackRuleType(rule_type)
        except ValueError as err:
            raise InputException(
                f"Invalid feedback rule type '{rule_type}': {doc}"
            ) from err
        json_paths = []
        for path_doc in doc.get("jsonPaths") or ():
            name = path_doc.get("name")
            path = path_doc.get("path")
            if not name or not path:
                raise InputException(f"Invalid json path missing name or path: {doc}")
            json_paths.append(
                JsonPath(name=name, path=path, version=path_doc.get("version"))
            )
        if parsed_type == FeedbackRuleType.JSON_PATHS and not json_paths:
            raise InputException(
                f"Invalid JSONPaths feedback rule without paths: {doc}"
            )
        return cls(type=parsed_type, json_paths=json_paths)


@dataclass
class ResourceIdentifier(BaseManifest):
    """Selects the manifests a ManifestConfig applies to."""

    group: str

    kind: str

    version: str | None = None

    name: str | None = None

    namespace: str | None = None

    def matches(self, meta: ManifestResourceMeta) -> bool:
        """Return True if the identifier selects the resource."""
        if self.group != meta.group or self.kind != meta.kind:
            return False
        if self.version and self.version != meta.version:
            return False
        if self.name and self.name != meta.name:
            return False
        if self.namespace and self.namespace != meta.namespace:
            return False
        return True


@dataclass
class ManifestConfig(BaseManifest):
    """Feedback configuration for the manifests matching an identifier."""

    resource_identifier: ResourceIdentifier = field(
        metadata=field_options(alias="resourceIdentifier")
    )

    feedback_rules: list[FeedbackRule] = field(
        metadata=field_options(alias="feedbackRules"), default_factory=list
    )

    stop_sync_threshold: int | None = field(
        metadata=field_options(alias="stopSyncThreshold"), default=None
    )
    """Overrides the controller stop sync threshold for these manifests."""

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "ManifestConfig":
        """Parse a ManifestConfig from a config object."""
        if not (ident := doc.get("resourceIdentifier")):
            raise InputException(
                f"Invalid manifest config missing resourceIdentifier: {doc}"
            )
        if "kind" not in ident:
            raise InputException(
                f"Invalid manifest config missing resourceIdentifier.kind: {doc}"
            )
        threshold = doc.get("stopSyncThreshold")
        if threshold is not None and threshold < 0:
            raise InputException(f"Invalid negative stopSyncThreshold: {doc}")
        return cls(
            resource_identifier=ResourceIdentifier(
                group=ident.get("group", ""),
                kind=ident["kind"],
                version=ident.get("version"),
                name=ident.get("name"),
                namespace=ident.get("namespace"),
            ),
            feedback_rules=[
                FeedbackRule.parse_doc(rule) for rule in doc.get("feedbackRules") or ()
            ],
            stop_sync_threshold=threshold,
        )


class ConditionStatus(StrEnum):
    """Tri-state status of a condition."""

    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


@dataclass
class Condition(BaseManifest):
    """A named health signal, unique by type within a condition list."""

    type: str

    status: ConditionStatus

    reason: str

    message: str = ""

    observed_generation: int = field(
        metadata=field_options(alias="observedGeneration"), default=0
    )

    last_transition_time: str | None = field(
        metadata=field_options(alias="lastTransitionTime"), default=None
    )


@dataclass
class ManifestCondition(BaseManifest):
    """The status reported for one manifest of a Work."""

    resource_meta: ManifestResourceMeta = field(
        metadata=field_options(alias="resourceMeta")
    )

    conditions: list[Condition] = field(default_factory=list)

    status_feedbacks: FeedbackResult = field(
        metadata=field_options(alias="statusFeedback"), default_factory=FeedbackResult
    )


@dataclass
class ManifestResourceStatus(BaseManifest):
    """The status of each manifest of a Work."""

    manifests: list[ManifestCondition] = field(default_factory=list)


@dataclass
class WorkStatus(BaseManifest):
    """The status of a Work."""

    conditions: list[Condition] = field(default_factory=list)

    resource_status: ManifestResourceStatus = field(
        metadata=field_options(alias="resourceStatus"),
        default_factory=ManifestResourceStatus,
    )


@dataclass
class WorkSpec(BaseManifest):
    """The manifests of a Work and their feedback configuration."""

    manifests: list[Manifest] = field(default_factory=list)

    manifest_configs: list[ManifestConfig] = field(
        metadata=field_options(alias="manifestConfigs"), default_factory=list
    )

    def find_manifest_config(self, meta: ManifestResourceMeta) -> ManifestConfig | None:
        """Return the first ManifestConfig selecting the resource."""
        for config in self.manifest_configs:
            if config.resource_identifier.matches(meta):
                return config
        return None


@dataclass
class Work(BaseManifest):
    """A set of manifests deployed to a spoke cluster and its fed back status."""

    kind: ClassVar[str] = WORK_KIND

    name: str

    namespace: str

    generation: int = 0

    resource_version: str = field(
        metadata=field_options(alias="resourceVersion"), default=""
    )
    """Changes on every write, used for optimistic concurrency."""

    spec: WorkSpec = field(default_factory=WorkSpec)

    status: WorkStatus = field(default_factory=WorkStatus)

    @property
    def work_id(self) -> NamedResource:
        """Return the store key of the Work."""
        return NamedResource(WORK_KIND, self.namespace, self.name)

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "Work":
        """Parse a Work from a kubernetes resource object."""
        if not (api_version := doc.get("apiVersion")):
            raise InputException(f"Invalid object missing apiVersion: {doc}")
        if not api_version.startswith(WORK_DOMAIN) or doc.get("kind") != WORK_KIND:
            raise InputException(f"Invalid object expected '{WORK_DOMAIN}' Work: {doc}")
        if not (metadata := doc.get("metadata")):
            raise InputException(f"Invalid {cls} missing metadata: {doc}")
        if not (name := metadata.get("name")):
            raise InputException(f"Invalid {cls} missing metadata.name: {doc}")
        spec = doc.get("spec") or {}
        workload = spec.get("workload") or {}
        status: WorkStatus = WorkStatus()
        if status_doc := doc.get("status"):
            status = cast(WorkStatus, WorkStatus.from_dict(status_doc))
        return cls(
            name=name,
            namespace=metadata.get("namespace", DEFAULT_NAMESPACE),
            generation=metadata.get("generation", 0),
            resource_version=str(metadata.get("resourceVersion", "")),
            spec=WorkSpec(
                manifests=[
                    Manifest(raw=raw) for raw in workload.get("manifests") or ()
                ],
                manifest_configs=[
                    ManifestConfig.parse_doc(config)
                    for config in spec.get("manifestConfigs") or ()
                ],
            ),
            status=status,
        )


def is_work(doc: dict[str, Any]) -> bool:
    """Check if the object is a Work."""
    return doc.get("kind") == WORK_KIND and doc.get("apiVersion", "").startswith(
        WORK_DOMAIN
    )
