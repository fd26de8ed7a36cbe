"""Tests for categorization and the clustering strategies."""

import pytest

from builders import assert_components_intact, assert_partition, isolated_template
from stack_splitter.models.enums import ClusterStrategy
from stack_splitter.models.split import AnalyzeOptions
from stack_splitter.services.clustering import ClusteringEngine, categorize_resource, cluster_resources
from stack_splitter.services.components import detect_strongly_connected_components
from stack_splitter.services.connectivity import analyze_connectivity
from stack_splitter.services.graph_builder import build_graph


@pytest.fixture
def engine():
    return ClusteringEngine()


def names(clusters):
    return [cluster.name for cluster in clusters]


def members(clusters):
    return {cluster.name: cluster.resource_ids for cluster in clusters}


class TestCategorizeResource:
    """Test suite for resource type categories."""

    @pytest.mark.parametrize(
        ("resource_type", "category"),
        [
            ("AWS::EC2::VPC", "Networking"),
            ("AWS::EC2::RouteTable", "Networking"),
            ("AWS::ElasticLoadBalancingV2::LoadBalancer", "Networking"),
            ("AWS::EC2::Instance", "Compute"),
            ("AWS::ECS::Service", "Compute"),
            ("AWS::DynamoDB::Table", "Data"),
            ("AWS::S3::Bucket", "Data"),
            ("AWS::IAM::Role", "IAM"),
            ("AWS::IAM::InstanceProfile", "IAM"),
            ("AWS::SNS::Topic", "Monitoring"),
            ("AWS::Logs::LogGroup", "Monitoring"),
            ("AWS::IAM::OIDCProvider", "Other"),
            ("Custom::Resource", "Other"),
            ("Unknown", "Other"),
        ],
    )
    def test_categories(self, resource_type, category):
        """Test the first matching prefix decides the category."""
        assert categorize_resource(resource_type) == category


class TestSemanticStrategy:
    """Test suite for semantic clustering."""

    def test_one_cluster_per_category_in_first_seen_order(self, engine, layered_graph):
        """Test categories become clusters in template order."""
        components = detect_strongly_connected_components(layered_graph)
        clusters = engine.semantic(layered_graph, components)
        assert names(clusters) == ["Networking", "Data", "IAM", "Compute", "Monitoring"]
        assert members(clusters)["Networking"] == ["SecurityGroup", "Subnet", "VPC"]
        assert members(clusters)["Compute"] == ["Function", "Instance"]
        assert [cluster.id for cluster in clusters] == [f"cluster-{i}" for i in range(5)]
        assert clusters[0].resource_types == {"AWS::EC2::VPC": 1, "AWS::EC2::Subnet": 1, "AWS::EC2::SecurityGroup": 1}

    def test_cyclic_component_moves_to_majority_cluster(self, engine, cyclic_graph):
        """Test a Role/Function cycle is pulled into one cluster and the emptied one dropped."""
        components = detect_strongly_connected_components(cyclic_graph)
        clusters = engine.semantic(cyclic_graph, components)
        assert names(clusters) == ["Data", "IAM", "Monitoring"]
        assert members(clusters)["IAM"] == ["Function", "Role"]
        assert [cluster.id for cluster in clusters] == ["cluster-0", "cluster-1", "cluster-2"]


class TestConnectivityStrategy:
    """Test suite for connectivity-based clustering."""

    def test_connected_template_is_one_group(self, engine, layered_graph):
        """Test a fully connected graph grows into one mixed group."""
        clusters = engine.connectivity_based(
            layered_graph,
            analyze_connectivity(layered_graph),
            detect_strongly_connected_components(layered_graph),
        )
        assert names(clusters) == ["ConnectedGroup-1"]
        assert clusters[0].category == "Mixed"
        assert clusters[0].size == 8

    def test_cycles_seed_their_own_clusters(self, engine, cyclic_graph):
        """Test cyclic components are seeded before breadth-first growth."""
        clusters = engine.connectivity_based(
            cyclic_graph,
            analyze_connectivity(cyclic_graph),
            detect_strongly_connected_components(cyclic_graph),
        )
        assert names(clusters) == ["SCC-1", "ConnectedGroup-1"]
        assert members(clusters) == {"SCC-1": ["Function", "Role"], "ConnectedGroup-1": ["Bucket", "Topic"]}
        assert clusters[0].category == "Mixed"

    def test_isolated_resources_get_own_groups(self, engine):
        """Test unconnected resources each form a group with their category."""
        graph = build_graph(isolated_template(3))
        clusters = engine.connectivity_based(
            graph, analyze_connectivity(graph), detect_strongly_connected_components(graph)
        )
        assert names(clusters) == ["ConnectedGroup-1", "ConnectedGroup-2", "ConnectedGroup-3"]
        assert {cluster.category for cluster in clusters} == {"Monitoring"}


class TestHybridStrategy:
    """Test suite for hybrid clustering."""

    def test_merges_everything_connected_without_size_pressure(self, engine, layered_graph):
        """Test greedy merging collapses a connected graph into the largest category."""
        clusters = engine.hybrid(
            layered_graph,
            analyze_connectivity(layered_graph),
            detect_strongly_connected_components(layered_graph),
        )
        assert names(clusters) == ["Networking"]
        assert clusters[0].size == 8

    def test_size_cap_refuses_merges(self, engine, layered_graph):
        """Test merges exceeding max_cluster_size are skipped for weaker permissible ones."""
        clusters = engine.hybrid(
            layered_graph,
            analyze_connectivity(layered_graph),
            detect_strongly_connected_components(layered_graph),
            max_cluster_size=4,
        )
        assert names(clusters) == ["Networking", "Data", "Monitoring"]
        assert members(clusters)["Data"] == ["Function", "Instance", "Role", "Table"]
        assert all(cluster.size <= 4 for cluster in clusters)

    def test_unconnected_categories_stay_apart(self, engine, round_trip_graph):
        """Test clusters with no edges between them are never merged."""
        clusters = engine.hybrid(
            round_trip_graph,
            analyze_connectivity(round_trip_graph),
            detect_strongly_connected_components(round_trip_graph),
        )
        assert len(clusters) == 2
        assert ["Lambda", "Role"] in [cluster.resource_ids for cluster in clusters]
        assert ["Subnet", "VPC"] in [cluster.resource_ids for cluster in clusters]


class TestClusterResources:
    """Test suite for the full clustering pipeline."""

    @pytest.mark.parametrize("strategy", list(ClusterStrategy))
    @pytest.mark.parametrize("template_fixture", ["round_trip_template", "layered_template", "cyclic_template"])
    def test_partition_and_cycles(self, request, strategy, template_fixture):
        """Test every strategy yields a scored partition that keeps cycles whole."""
        graph = build_graph(request.getfixturevalue(template_fixture))
        components = detect_strongly_connected_components(graph)
        clusters = cluster_resources(graph, AnalyzeOptions(strategy=strategy))

        assert_partition(clusters, graph)
        assert_components_intact(clusters, components)
        for cluster in clusters:
            assert cluster.score.cluster_id == cluster.id
            assert cluster.score.size == cluster.size
            assert 0.0 <= cluster.score.quality <= 1.0
            assert sum(cluster.resource_types.values()) == cluster.size

    @pytest.mark.parametrize("strategy", list(ClusterStrategy))
    def test_max_cluster_size_respected(self, strategy, layered_graph):
        """Test no final cluster exceeds the size cap."""
        clusters = cluster_resources(layered_graph, AnalyzeOptions(strategy=strategy, max_cluster_size=3))
        assert_partition(clusters, layered_graph)
        assert all(cluster.size <= 3 for cluster in clusters)

    def test_deterministic(self, layered_graph):
        """Test repeated runs give identical clusters."""
        assert cluster_resources(layered_graph) == cluster_resources(layered_graph)

    def test_empty_graph(self):
        """Test an empty template yields no clusters."""
        assert cluster_resources(build_graph({})) == []
