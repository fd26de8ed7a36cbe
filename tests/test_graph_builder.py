"""Tests for dependency graph construction."""

import copy

import pytest

from stack_splitter.core.exceptions import TemplateSectionError
from stack_splitter.models.enums import EdgeKind
from stack_splitter.models.graph import DependencyEdge
from stack_splitter.services.graph_builder import DependencyGraphBuilder, build_graph


def edge_set(graph):
    return {(edge.source, edge.target, edge.kind, edge.attribute) for edge in graph.edges}


class TestReferenceDetection:
    """Test suite for Ref, Fn::GetAtt and DependsOn edges."""

    def test_round_trip_edges(self, round_trip_graph):
        """Test the VPC/Subnet/Lambda/Role template produces exactly two edges."""
        assert edge_set(round_trip_graph) == {
            ("Subnet", "VPC", EdgeKind.REFERENCE, None),
            ("Lambda", "Role", EdgeKind.ATTRIBUTE_REFERENCE, "Arn"),
        }
        assert round_trip_graph.nodes["Subnet"].depends_on == {"VPC"}
        assert round_trip_graph.nodes["VPC"].depended_on_by == {"Subnet"}
        assert round_trip_graph.nodes["Role"].depended_on_by == {"Lambda"}

    def test_nodes_keep_template_order_and_types(self, layered_graph):
        """Test nodes are keyed in template order with their resource types."""
        assert list(layered_graph.nodes) == [
            "VPC", "Subnet", "SecurityGroup", "Table", "Role", "Function", "Instance", "Alarm",
        ]
        assert layered_graph.resource_type("Table") == "AWS::DynamoDB::Table"
        assert layered_graph.resource_type("Missing") == "Unknown"

    def test_missing_type_is_unknown(self):
        """Test resources without a Type get the Unknown placeholder."""
        graph = build_graph({"Resources": {"Thing": {"Properties": {}}}})
        assert graph.nodes["Thing"].resource_type == "Unknown"

    def test_dotted_get_att(self):
        """Test the dotted string form of Fn::GetAtt."""
        graph = build_graph({
            "Resources": {
                "Bucket": {"Type": "AWS::S3::Bucket"},
                "Dist": {
                    "Type": "AWS::CloudFront::Distribution",
                    "Properties": {"Origin": {"Fn::GetAtt": "Bucket.DomainName"}},
                },
            }
        })
        assert edge_set(graph) == {("Dist", "Bucket", EdgeKind.ATTRIBUTE_REFERENCE, "DomainName")}

    def test_non_string_attribute_is_stringified(self):
        """Test list-form attributes that are not strings are stringified."""
        graph = build_graph({
            "Resources": {
                "A": {"Type": "AWS::SNS::Topic"},
                "B": {"Type": "AWS::SNS::Topic", "Properties": {"X": {"Fn::GetAtt": ["A", 1]}}},
            }
        })
        assert graph.edges[0].attribute == "1"

    def test_depends_on_string_and_list(self):
        """Test DependsOn accepts a single name or a list of names."""
        graph = build_graph({
            "Resources": {
                "A": {"Type": "AWS::SNS::Topic"},
                "B": {"Type": "AWS::SNS::Topic", "DependsOn": "A"},
                "C": {"Type": "AWS::SNS::Topic", "DependsOn": ["A", "B"]},
            }
        })
        assert edge_set(graph) == {
            ("B", "A", EdgeKind.EXPLICIT_ORDERING, None),
            ("C", "A", EdgeKind.EXPLICIT_ORDERING, None),
            ("C", "B", EdgeKind.EXPLICIT_ORDERING, None),
        }

    def test_duplicate_references_collapse(self):
        """Test identical edges found in several places are stored once."""
        graph = build_graph({
            "Resources": {
                "A": {"Type": "AWS::SNS::Topic"},
                "B": {
                    "Type": "AWS::SNS::Topic",
                    "Properties": {"X": {"Ref": "A"}, "Tags": [{"Value": {"Ref": "A"}}]},
                    "Metadata": {"Note": {"Ref": "A"}},
                },
            }
        })
        assert graph.edges == [DependencyEdge(source="B", target="A", kind=EdgeKind.REFERENCE)]

    def test_get_att_and_ref_are_distinct_edges(self):
        """Test a Ref and a GetAtt to the same resource are two edges."""
        graph = build_graph({
            "Resources": {
                "A": {"Type": "AWS::SQS::Queue"},
                "B": {
                    "Type": "AWS::SNS::Subscription",
                    "Properties": {"Endpoint": {"Fn::GetAtt": ["A", "Arn"]}, "Queue": {"Ref": "A"}},
                },
            }
        })
        assert len(graph.edges) == 2
        assert graph.nodes["B"].depends_on == {"A"}

    def test_parameters_pseudo_parameters_and_dangling_references_ignored(self, layered_graph):
        """Test only in-template resource targets become edges."""
        targets = {edge.target for edge in layered_graph.edges}
        assert "Env" not in targets
        assert "VpcCidr" not in targets
        assert "AWS::Region" not in targets
        assert layered_graph.parameter_ids == {"Env", "VpcCidr", "Unused"}

        graph = build_graph({
            "Resources": {
                "A": {"Type": "AWS::SNS::Topic", "DependsOn": "Ghost", "Properties": {"X": {"Ref": "Nope"}}}
            }
        })
        assert graph.edges == []

    def test_sub_references_are_not_edges(self):
        """Test resource names inside Fn::Sub strings are not graph edges."""
        graph = build_graph({
            "Resources": {
                "Bucket": {"Type": "AWS::S3::Bucket"},
                "Topic": {"Type": "AWS::SNS::Topic", "Properties": {"Name": {"Fn::Sub": "${Bucket}-events"}}},
            }
        })
        assert graph.edges == []

    def test_layered_edge_count(self, layered_graph):
        """Test every reference in the layered template is found once."""
        assert len(layered_graph.edges) == 9
        assert layered_graph.nodes["Function"].depends_on == {"Role", "Subnet", "SecurityGroup", "Table"}
        assert layered_graph.nodes["Function"].depended_on_by == {"Alarm"}


class TestConditions:
    """Test suite for Condition indexing."""

    def test_condition_usage(self, layered_graph):
        """Test gated resources are indexed by condition."""
        assert layered_graph.condition_usage == {"CreateAlarms": {"Alarm"}}
        assert layered_graph.nodes["Alarm"].conditions == ["CreateAlarms"]

    def test_condition_share_edges_are_virtual(self):
        """Test shared conditions yield virtual edges that are never stored."""
        graph = build_graph({
            "Resources": {
                "A": {"Type": "AWS::SNS::Topic", "Condition": "IsProd"},
                "B": {"Type": "AWS::SNS::Topic", "Condition": "IsProd"},
                "C": {"Type": "AWS::SNS::Topic", "Condition": "IsProd"},
            }
        })
        virtual = list(graph.condition_share_edges())
        assert [(edge.source, edge.target) for edge in virtual] == [("A", "B"), ("A", "C"), ("B", "C")]
        assert all(edge.kind == EdgeKind.CONDITION_SHARE for edge in virtual)
        assert graph.edges == []
        assert graph.shared_conditions("A", "C") == ["IsProd"]


class TestValidation:
    """Test suite for structural template errors."""

    def test_non_mapping_template(self):
        """Test a document that is not a mapping is rejected."""
        with pytest.raises(TemplateSectionError) as exc_info:
            build_graph(["not", "a", "template"])
        assert exc_info.value.section == "Template"

    @pytest.mark.parametrize("section", ["Resources", "Outputs", "Parameters", "Conditions", "Mappings"])
    def test_non_mapping_section(self, section):
        """Test each known section must be a mapping."""
        with pytest.raises(TemplateSectionError) as exc_info:
            build_graph({section: ["oops"]})
        assert exc_info.value.section == section

    def test_non_mapping_resource(self):
        """Test a resource entry that is not a mapping names the resource."""
        with pytest.raises(TemplateSectionError) as exc_info:
            build_graph({"Resources": {"Bad": "AWS::SNS::Topic"}})
        assert exc_info.value.section == "Resources.Bad"

    def test_empty_template(self):
        """Test a template without resources yields an empty graph."""
        graph = build_graph({})
        assert graph.nodes == {}
        assert graph.edges == []
        assert graph.resource_count == 0
        assert graph.edge_density() == 0.0


class TestBuilderProperties:
    """Test suite for builder purity."""

    def test_template_not_mutated(self, layered_template):
        """Test the builder only reads the template."""
        original = copy.deepcopy(layered_template)
        build_graph(layered_template)
        assert layered_template == original

    def test_idempotent(self, layered_template):
        """Test building twice gives equal graphs."""
        builder = DependencyGraphBuilder()
        assert builder.build(layered_template) == builder.build(layered_template)

    def test_adjacency_matches_edges(self, layered_graph):
        """Test depends_on / depended_on_by mirror the edge list."""
        for edge in layered_graph.edges:
            assert edge.target in layered_graph.nodes[edge.source].depends_on
            assert edge.source in layered_graph.nodes[edge.target].depended_on_by
        total = sum(len(node.depends_on) for node in layered_graph.nodes.values())
        assert total == len({(edge.source, edge.target) for edge in layered_graph.edges})
