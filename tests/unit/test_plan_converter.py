"""Unit tests for Loom to Plan conversion."""

from src.loom import parse_strict
from src.plan import Plan, loom_to_plan, normalize_connections
from src.plan.converter import DEFAULT_NODE_NAME, DEFAULT_NODE_TYPE, convert_node
from tests.factories import PLAN_LOOM


class TestLoomToPlan:
    """Top-level plan fields."""

    def test_plan_example(self):
        plan = loom_to_plan(parse_strict(PLAN_LOOM))

        assert plan.title == "Daily Slack digest"
        assert plan.node_count == 2
        assert plan.workflow.nodes[1].type == "n8n-nodes-base.slack"
        assert plan.workflow.nodes[1].position == [250.0, 0.0]
        assert plan.credentials_needed[0].type == "slackApi"
        assert plan.credentials_needed[0].required_for == "Post to Slack"
        assert plan.credentials_available is None

    def test_defaults_for_empty_document(self):
        plan = loom_to_plan({})

        assert plan.title == "Workflow"
        assert plan.summary == "Generated workflow"
        assert plan.workflow.name == "Workflow"
        assert plan.workflow.nodes == []
        assert plan.workflow.connections == {}

    def test_workflow_name_defaults_to_title(self):
        plan = loom_to_plan({"title": "Sync CRM", "workflow": {"nodes": []}})
        assert plan.workflow.name == "Sync CRM"

    def test_prose_with_commas_joined_back(self):
        plan = loom_to_plan({"title": "x", "summary": ["Fetch rows", "filter", "post"]})
        assert plan.summary == "Fetch rows, filter, post"

    def test_single_node_object_accepted(self):
        plan = loom_to_plan({"workflow": {"nodes": {"id": "a", "name": "A", "type": "t"}}})
        assert [n.id for n in plan.workflow.nodes] == ["a"]

    def test_credential_shorthand_and_available_status(self):
        plan = loom_to_plan(
            {
                "credentialsNeeded": ["slackApi", 3],
                "credentialsAvailable": [{"type": "slackApi", "status": "configured"}],
            }
        )
        assert [c.type for c in plan.credentials_needed] == ["slackApi"]
        assert plan.credentials_available[0].required_for == "configured"


class TestConvertNode:
    """Per-node normalization."""

    def test_missing_fields_filled(self):
        node = convert_node({})

        assert node.id
        assert node.name == DEFAULT_NODE_NAME
        assert node.type == DEFAULT_NODE_TYPE
        assert node.type_version == 1
        assert node.position == [0.0, 0.0]
        assert node.parameters == {}
        assert node.credentials is None

    def test_generated_ids_are_unique(self):
        assert convert_node({}).id != convert_node({}).id

    def test_numeric_id_becomes_text(self):
        assert convert_node({"id": 7}).id == "7"
        assert convert_node({"id": 7.0}).id == "7"

    def test_position_from_string(self):
        assert convert_node({"position": "100, 200"}).position == [100.0, 200.0]

    def test_malformed_position_reset(self):
        assert convert_node({"position": "left"}).position == [0.0, 0.0]
        assert convert_node({"position": [1, 2, 3]}).position == [0.0, 0.0]

    def test_type_version_from_string(self):
        assert convert_node({"typeVersion": "2.1"}).type_version == 2.1
        assert convert_node({"typeVersion": "latest"}).type_version == 1
        assert convert_node({"typeVersion": -2}).type_version == 1

    def test_non_dict_parameters_dropped(self):
        assert convert_node({"parameters": "none"}).parameters == {}

    def test_credentials_kept(self):
        creds = {"slackApi": {"id": "1", "name": "Slack"}}
        assert convert_node({"credentials": creds}).credentials == creds


class TestNormalizeConnections:
    """Connection shapes accepted from the model."""

    expected = {"A": {"main": [[{"node": "B", "type": "main", "index": 0}]]}}

    def test_double_nested_unchanged(self):
        assert normalize_connections(self.expected) == self.expected

    def test_single_nested(self):
        raw = {"A": {"main": [{"node": "B", "type": "main", "index": 0}]}}
        assert normalize_connections(raw) == self.expected

    def test_list_shorthand(self):
        assert normalize_connections({"A": [{"node": "B"}]}) == self.expected

    def test_name_shorthand(self):
        assert normalize_connections({"A": "B"}) == self.expected

    def test_bare_target_dict(self):
        assert normalize_connections({"A": {"node": "B"}}) == self.expected

    def test_index_coerced(self):
        raw = {"A": {"main": [[{"node": "B", "index": "1"}]]}}
        assert normalize_connections(raw)["A"]["main"][0][0]["index"] == 1

    def test_multiple_outputs_kept_in_order(self):
        raw = {"If": {"main": [[{"node": "Yes"}], [{"node": "No"}]]}}
        groups = normalize_connections(raw)["If"]["main"]
        assert [g[0]["node"] for g in groups] == ["Yes", "No"]

    def test_empty_targets_dropped(self):
        assert normalize_connections({"A": {"main": [[]]}, "B": ""}) == {}

    def test_non_dict_input(self):
        assert normalize_connections("A -> B") == {}
        assert normalize_connections(None) == {}


class TestPlanWire:
    """Wire serialization."""

    def test_to_wire_omits_unset_optionals(self):
        wire = loom_to_plan(parse_strict(PLAN_LOOM)).to_wire()

        assert "credentialsAvailable" not in wire
        assert all("credentials" not in n for n in wire["workflow"]["nodes"])
        assert wire["credentialsNeeded"][0]["requiredFor"] == "Post to Slack"

    def test_integral_type_version_written_as_int(self):
        wire = loom_to_plan({"workflow": {"nodes": [{"typeVersion": 1.0}]}}).to_wire()
        version = wire["workflow"]["nodes"][0]["typeVersion"]
        assert version == 1
        assert isinstance(version, int)

    def test_from_wire_round_trip(self):
        plan = loom_to_plan(parse_strict(PLAN_LOOM))
        assert Plan.from_wire(plan.to_wire()) == plan
