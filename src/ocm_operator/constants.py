"""Constants for the OCM Operator."""

# API Group
API_GROUP = "ocm.mobb.redhat.com"
API_VERSION = "v1alpha1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds
KIND_GITLAB_IDENTITY_PROVIDER = "GitLabIdentityProvider"
PLURAL_GITLAB_IDENTITY_PROVIDERS = "gitlabidentityproviders"

# Finalizers
FINALIZER = f"{API_GROUP}/finalizer"

# Controller name used in logs and events
CONTROLLER_NAME = "ocm-operator"

# Data keys expected in referenced secrets and config maps
GITLAB_CLIENT_SECRET_KEY = "clientSecret"
GITLAB_CA_KEY = "ca.crt"

# Mapping method used when the spec leaves it empty
DEFAULT_MAPPING_METHOD = "claim"

# OCM identity provider type for GitLab
OCM_IDP_TYPE_GITLAB = "GitlabIdentityProvider"

# Cluster state that accepts new identity providers
CLUSTER_STATE_READY = "ready"

# Condition Types
COND_READY = "Ready"

# Condition Reasons
REASON_RECONCILED = "Reconciled"
REASON_MISSING_SECRET = "MissingSecret"
REASON_INVALID_SECRET = "InvalidSecret"
REASON_MISSING_CA = "MissingCA"
REASON_INVALID_CA = "InvalidCA"
REASON_INVALID_CLUSTER_NAME = "InvalidClusterName"
REASON_CLUSTER_NOT_FOUND = "ClusterNotFound"
REASON_CLUSTER_NOT_READY = "ClusterNotReady"
REASON_IMMUTABLE_FIELD = "ImmutableFieldConflict"
REASON_REMOTE_ERROR = "RemoteError"
REASON_REMOTE_REJECTED = "RemoteRejected"
REASON_FINALIZER_FAILED = "FinalizerFailed"
REASON_STATUS_CONFLICT = "StatusConflict"
REASON_TYPE_MISMATCH = "TypeMismatch"
REASON_CANCELLED = "Cancelled"
REASON_RECONCILE_FAILED = "ReconcileFailed"

# Event Reasons
EVENT_REASON_RECONCILE_STARTED = "ReconcileStarted"
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_IDP_CREATED = "IdentityProviderCreated"
EVENT_REASON_IDP_UPDATED = "IdentityProviderUpdated"
EVENT_REASON_IDP_DELETED = "IdentityProviderDeleted"
