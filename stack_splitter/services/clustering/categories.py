"""Resource type → semantic category heuristics."""

DEFAULT_CATEGORY = "Other"

# Order matters: the first rule with a matching prefix wins.
CATEGORY_RULES: list[tuple[str, tuple[str, ...]]] = [
    (
        "Networking",
        (
            "AWS::EC2::VPC",
            "AWS::EC2::Subnet",
            "AWS::EC2::SecurityGroup",
            "AWS::EC2::RouteTable",
            "AWS::EC2::Route",
            "AWS::EC2::NatGateway",
            "AWS::EC2::InternetGateway",
            "AWS::EC2::VPCGatewayAttachment",
            "AWS::EC2::EIP",
            "AWS::EC2::NetworkInterface",
            "AWS::EC2::NetworkAcl",
            "AWS::EC2::SubnetRouteTableAssociation",
            "AWS::EC2::SubnetNetworkAclAssociation",
            "AWS::EC2::VPCEndpoint",
            "AWS::EC2::VPNGateway",
            "AWS::EC2::DHCPOptions",
            "AWS::EC2::TransitGateway",
            "AWS::EC2::PrefixList",
            "AWS::ElasticLoadBalancing::",
            "AWS::ElasticLoadBalancingV2::",
            "AWS::Route53::",
            "AWS::CloudFront::",
            "AWS::ApiGateway::",
            "AWS::ApiGatewayV2::",
        ),
    ),
    (
        "Compute",
        (
            "AWS::Lambda::",
            "AWS::EC2::Instance",
            "AWS::EC2::LaunchTemplate",
            "AWS::ECS::",
            "AWS::EKS::",
            "AWS::AutoScaling::",
            "AWS::Batch::",
            "AWS::StepFunctions::",
            "AWS::AppRunner::",
        ),
    ),
    (
        "Data",
        (
            "AWS::DynamoDB::",
            "AWS::RDS::",
            "AWS::S3::",
            "AWS::ElastiCache::",
            "AWS::Redshift::",
            "AWS::Neptune::",
            "AWS::DocumentDB::",
            "AWS::Kinesis::",
            "AWS::OpenSearchService::",
            "AWS::Elasticsearch::",
            "AWS::DAX::",
            "AWS::Athena::",
        ),
    ),
    (
        "IAM",
        (
            "AWS::IAM::Role",
            "AWS::IAM::Policy",
            "AWS::IAM::InstanceProfile",
            "AWS::IAM::ManagedPolicy",
            "AWS::IAM::User",
            "AWS::IAM::Group",
            "AWS::IAM::AccessKey",
            "AWS::IAM::ServiceLinkedRole",
        ),
    ),
    (
        "Monitoring",
        (
            "AWS::CloudWatch::",
            "AWS::SNS::",
            "AWS::SQS::",
            "AWS::Logs::",
            "AWS::Events::",
            "AWS::ApplicationAutoScaling::",
            "AWS::CloudTrail::",
            "AWS::Config::",
        ),
    ),
]


def categorize_resource(resource_type: str) -> str:
    """Classify a resource type string into a category.

    Examples:
        >>> categorize_resource("AWS::Lambda::Function")
        'Compute'
        >>> categorize_resource("AWS::EC2::SubnetRouteTableAssociation")
        'Networking'
        >>> categorize_resource("Custom::Thing")
        'Other'
    """
    for category, prefixes in CATEGORY_RULES:
        if resource_type.startswith(prefixes):
            return category
    return DEFAULT_CATEGORY
