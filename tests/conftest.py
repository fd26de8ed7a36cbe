"""Shared pytest fixtures for stack splitter tests."""

import logging
from collections.abc import Callable
from typing import Any

import pytest
import structlog

from stack_splitter.models.analysis import ResourceCluster
from stack_splitter.models.graph import DependencyGraph
from stack_splitter.services.clustering.categories import categorize_resource
from stack_splitter.services.graph_builder import build_graph
from stack_splitter.services.scoring import count_types, score_clusters


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers installed by setup_logging so captured streams are not reused."""
    yield
    logging.getLogger().handlers.clear()
    structlog.reset_defaults()


@pytest.fixture
def round_trip_template() -> dict[str, Any]:
    """VPC/Subnet networking, an IAM role and a Lambda reading the role's ARN."""
    return {
        "AWSTemplateFormatVersion": "2010-09-09",
        "Description": "Round trip",
        "Resources": {
            "VPC": {"Type": "AWS::EC2::VPC", "Properties": {"CidrBlock": "10.0.0.0/16"}},
            "Subnet": {
                "Type": "AWS::EC2::Subnet",
                "Properties": {"VpcId": {"Ref": "VPC"}, "CidrBlock": "10.0.1.0/24"},
            },
            "Lambda": {
                "Type": "AWS::Lambda::Function",
                "Properties": {
                    "Role": {"Fn::GetAtt": ["Role", "Arn"]},
                    "Runtime": "python3.12",
                    "Handler": "index.handler",
                    "Code": {"ZipFile": "def handler(event, context): pass"},
                },
            },
            "Role": {
                "Type": "AWS::IAM::Role",
                "Properties": {
                    "AssumeRolePolicyDocument": {
                        "Statement": [
                            {
                                "Effect": "Allow",
                                "Principal": {"Service": "lambda.amazonaws.com"},
                                "Action": "sts:AssumeRole",
                            }
                        ]
                    }
                },
            },
        },
    }


@pytest.fixture
def layered_template() -> dict[str, Any]:
    """Networking, data, IAM, compute and monitoring layers with every section."""
    return {
        "AWSTemplateFormatVersion": "2010-09-09",
        "Description": "Layered app",
        "Parameters": {
            "Env": {"Type": "String", "Default": "dev"},
            "VpcCidr": {"Type": "String", "Default": "10.0.0.0/16"},
            "Unused": {"Type": "String"},
        },
        "Mappings": {"RegionMap": {"us-east-1": {"Ami": "ami-123"}}},
        "Conditions": {
            "IsProd": {"Fn::Equals": [{"Ref": "Env"}, "prod"]},
            "CreateAlarms": {"Fn::And": [{"Condition": "IsProd"}, {"Fn::Equals": ["a", "a"]}]},
        },
        "Resources": {
            "VPC": {"Type": "AWS::EC2::VPC", "Properties": {"CidrBlock": {"Ref": "VpcCidr"}}},
            "Subnet": {
                "Type": "AWS::EC2::Subnet",
                "Properties": {"VpcId": {"Ref": "VPC"}, "CidrBlock": "10.0.1.0/24"},
            },
            "SecurityGroup": {
                "Type": "AWS::EC2::SecurityGroup",
                "Properties": {"VpcId": {"Ref": "VPC"}, "GroupDescription": "app"},
            },
            "Table": {
                "Type": "AWS::DynamoDB::Table",
                "Properties": {"TableName": {"Fn::Sub": "${Env}-table"}},
            },
            "Role": {
                "Type": "AWS::IAM::Role",
                "Properties": {
                    "Policies": [
                        {
                            "PolicyDocument": {
                                "Statement": [{"Resource": {"Fn::GetAtt": ["Table", "Arn"]}}]
                            }
                        }
                    ]
                },
            },
            "Function": {
                "Type": "AWS::Lambda::Function",
                "Properties": {
                    "Role": {"Fn::GetAtt": ["Role", "Arn"]},
                    "VpcConfig": {
                        "SubnetIds": [{"Ref": "Subnet"}],
                        "SecurityGroupIds": [{"Ref": "SecurityGroup"}],
                    },
                    "Environment": {"Variables": {"TABLE": {"Ref": "Table"}}},
                },
            },
            "Instance": {
                "Type": "AWS::EC2::Instance",
                "Properties": {
                    "ImageId": {"Fn::FindInMap": ["RegionMap", {"Ref": "AWS::Region"}, "Ami"]},
                    "SubnetId": {"Ref": "Subnet"},
                },
            },
            "Alarm": {
                "Type": "AWS::CloudWatch::Alarm",
                "Condition": "CreateAlarms",
                "Properties": {"Dimensions": [{"Name": "FunctionName", "Value": {"Ref": "Function"}}]},
            },
        },
        "Outputs": {
            "FunctionArn": {"Value": {"Fn::GetAtt": ["Function", "Arn"]}},
            "VpcId": {"Value": {"Ref": "VPC"}, "Export": {"Name": "app-vpc"}},
            "EnvName": {"Value": {"Ref": "Env"}},
        },
    }


@pytest.fixture
def cyclic_template() -> dict[str, Any]:
    """A role and a function that reference each other (IAM ↔ Compute cycle)."""
    return {
        "Resources": {
            "Bucket": {"Type": "AWS::S3::Bucket"},
            "Role": {
                "Type": "AWS::IAM::Role",
                "Properties": {
                    "Policies": [
                        {
                            "PolicyDocument": {
                                "Statement": [{"Resource": {"Fn::GetAtt": ["Function", "Arn"]}}]
                            }
                        }
                    ]
                },
            },
            "Function": {
                "Type": "AWS::Lambda::Function",
                "Properties": {
                    "Role": {"Fn::GetAtt": ["Role", "Arn"]},
                    "Environment": {"Variables": {"BUCKET": {"Ref": "Bucket"}}},
                },
            },
            "Topic": {"Type": "AWS::SNS::Topic", "DependsOn": "Bucket"},
        }
    }


@pytest.fixture
def round_trip_graph(round_trip_template) -> DependencyGraph:
    return build_graph(round_trip_template)


@pytest.fixture
def layered_graph(layered_template) -> DependencyGraph:
    return build_graph(layered_template)


@pytest.fixture
def cyclic_graph(cyclic_template) -> DependencyGraph:
    return build_graph(cyclic_template)


@pytest.fixture
def make_clusters() -> Callable[..., list[ResourceCluster]]:
    """Build scored clusters from ``{name: [logical ids]}`` in the given order."""

    def factory(graph: DependencyGraph, groups: dict[str, list[str]]) -> list[ResourceCluster]:
        clusters = []
        for index, (name, resource_ids) in enumerate(groups.items()):
            categories = {categorize_resource(graph.resource_type(i)) for i in resource_ids}
            clusters.append(
                ResourceCluster(
                    id=f"cluster-{index}",
                    name=name,
                    category=categories.pop() if len(categories) == 1 else "Mixed",
                    resource_ids=sorted(resource_ids),
                    resource_types=count_types(resource_ids, graph),
                )
            )
        return score_clusters(clusters, graph)

    return factory
