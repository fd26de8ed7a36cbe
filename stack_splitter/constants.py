"""Centralized constants for stack splitter to eliminate duplicate strings and magic numbers."""

# Platform hard limits (per stack)
RESOURCE_LIMIT = 500
OUTPUT_LIMIT = 200
TEMPLATE_BYTES_LIMIT = 1_048_576  # 1MB template body

# Warn when usage reaches this fraction of a limit
WARNING_THRESHOLD = 0.8

# Clustering defaults
DEFAULT_MAX_CLUSTER_SIZE = int(RESOURCE_LIMIT * WARNING_THRESHOLD)  # 400
DEFAULT_MIN_QUALITY = 0.3
DEFAULT_STRATEGY = "hybrid"
DEFAULT_STACK_PREFIX = "Stack"

# Connectivity scoring weights
EDGE_WEIGHT = 20
BIDIRECTIONAL_BONUS = 30
SHARED_CONDITION_WEIGHT = 15
MAX_CONNECTION_SCORE = 100
STRONG_CONNECTION_THRESHOLD = 20

# Cluster quality model
EXPECTED_INTERNAL_RATIO = 0.7  # share of a resource's edges expected to stay internal
COUPLING_PENALTY = 0.5

# Local-search optimizer
MAX_OPTIMIZATION_ITERATIONS = 10
MIN_IMPROVEMENT_THRESHOLD = 0.05

# Suggestion ranking
CROSS_STACK_PENALTY = 0.3
EST_DEPLOY_MINUTES_PER_STACK = 5
EST_DEPLOY_MINUTES_PER_DEPENDENCY = 0.5

# Anti-pattern / opportunity heuristics
MONOLITH_RESOURCE_COUNT = 200
HIGH_COUPLING_AVG_DEPENDENCIES = 5
CYCLIC_DENSITY_THRESHOLD = 0.1
REUSABLE_MODULE_MIN_COUNT = 10

# Template keys
RESOURCES = "Resources"
PARAMETERS = "Parameters"
MAPPINGS = "Mappings"
CONDITIONS = "Conditions"
OUTPUTS = "Outputs"
DESCRIPTION = "Description"
FORMAT_VERSION = "AWSTemplateFormatVersion"
TEMPLATE_SECTIONS = (PARAMETERS, MAPPINGS, CONDITIONS, RESOURCES, OUTPUTS)

# Resource keys
TYPE = "Type"
PROPERTIES = "Properties"
DEPENDS_ON = "DependsOn"
CONDITION = "Condition"
WALKED_RESOURCE_KEYS = ("Properties", "Metadata", "CreationPolicy", "UpdatePolicy")

# Intrinsic functions
REF = "Ref"
GET_ATT = "Fn::GetAtt"
SUB = "Fn::Sub"
IF = "Fn::If"
FIND_IN_MAP = "Fn::FindInMap"
IMPORT_VALUE = "Fn::ImportValue"

UNKNOWN_TYPE = "Unknown"
DEFAULT_DESCRIPTION = "CloudFormation Stack"
NESTED_STACK_TYPE = "AWS::CloudFormation::Stack"
TEMPLATE_URL_PARAMETER = "TemplateURLBase"
PARENT_STACK_NAME = "Parent"

# Pseudo-parameters are never resource references
PSEUDO_PARAMETERS = frozenset(
    {
        "AWS::AccountId",
        "AWS::NotificationARNs",
        "AWS::NoValue",
        "AWS::Partition",
        "AWS::Region",
        "AWS::StackId",
        "AWS::StackName",
        "AWS::URLSuffix",
    }
)
