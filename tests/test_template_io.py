"""Tests for template loading and serialization."""

import json

import pytest
import yaml

from stack_splitter.core.exceptions import TemplateParseError
from stack_splitter.core.template_io import (
    dump_template,
    load_template,
    load_template_file,
    strip_json_comments,
    write_split_result,
)
from stack_splitter.models.split import GeneratedStack, SplitOption, SplitResult, SplitSuggestion

YAML_TEMPLATE = """
AWSTemplateFormatVersion: 2010-09-09
Conditions:
  IsProd: !Equals [!Ref Env, prod]
Resources:
  Role:
    Type: AWS::IAM::Role
  Fn:
    Type: AWS::Lambda::Function
    Condition: IsProd
    Properties:
      Role: !GetAtt Role.Arn
      Name: !Sub "${AWS::StackName}-fn"
      Arn: !GetAtt [Role, Arn]
      Size: !If [IsProd, 10, 1]
      Zip: !Base64 "code"
      Gate: !Condition IsProd
"""


class TestLoadTemplate:
    """Test suite for load_template."""

    def test_short_form_tags(self):
        """Test CloudFormation short tags expand to their long form."""
        template = load_template(YAML_TEMPLATE)
        properties = template["Resources"]["Fn"]["Properties"]
        assert properties["Role"] == {"Fn::GetAtt": ["Role", "Arn"]}
        assert properties["Arn"] == {"Fn::GetAtt": ["Role", "Arn"]}
        assert properties["Name"] == {"Fn::Sub": "${AWS::StackName}-fn"}
        assert properties["Size"] == {"Fn::If": ["IsProd", 10, 1]}
        assert properties["Zip"] == {"Fn::Base64": "code"}
        assert properties["Gate"] == {"Condition": "IsProd"}
        assert template["Conditions"]["IsProd"] == {"Fn::Equals": [{"Ref": "Env"}, "prod"]}

    def test_dates_stay_strings(self):
        """Test the format version is not turned into a date."""
        assert load_template(YAML_TEMPLATE)["AWSTemplateFormatVersion"] == "2010-09-09"

    def test_plain_json(self):
        """Test JSON parses through the YAML loader."""
        assert load_template('{"Resources": {"A": {"Type": "AWS::SNS::Topic"}}}') == {
            "Resources": {"A": {"Type": "AWS::SNS::Topic"}}
        }

    def test_json_with_comments_falls_back(self):
        """Test JSON with comments that YAML rejects still loads."""
        text = '// generated\n{"Resources": {"A": {"Type": "AWS::SNS::Topic"} /* note */}}\n'
        assert load_template(text) == {"Resources": {"A": {"Type": "AWS::SNS::Topic"}}}

    @pytest.mark.parametrize("text", ["", "   \n\t"])
    def test_empty(self, text):
        """Test empty input is rejected."""
        with pytest.raises(TemplateParseError):
            load_template(text)

    def test_garbage(self):
        """Test text that is neither YAML nor JSON is rejected."""
        with pytest.raises(TemplateParseError):
            load_template("{{{not valid")

    def test_missing_file(self, tmp_path):
        """Test unreadable files raise TemplateParseError."""
        with pytest.raises(TemplateParseError):
            load_template_file(tmp_path / "missing.yaml")

    def test_file(self, tmp_path):
        """Test templates load from disk."""
        path = tmp_path / "template.yaml"
        path.write_text(YAML_TEMPLATE, encoding="utf-8")
        assert "Fn" in load_template_file(path)["Resources"]


class TestStripJsonComments:
    """Test suite for strip_json_comments."""

    def test_keeps_comment_markers_inside_strings(self):
        """Test // and /* inside strings survive."""
        text = '{"url": "https://example.com/*x*/"} // trailing\n'
        assert json.loads(strip_json_comments(text)) == {"url": "https://example.com/*x*/"}

    def test_multiline_block_comment(self):
        """Test block comments may span lines."""
        assert json.loads(strip_json_comments('/* a\n b */ {"a": 1}')) == {"a": 1}


class TestDumpTemplate:
    """Test suite for dump_template."""

    def test_json_indented(self):
        """Test JSON output is 2-space indented with a trailing newline."""
        assert dump_template({"a": 1}) == '{\n  "a": 1\n}\n'

    def test_json_minimized(self):
        """Test minimized JSON has no whitespace."""
        assert dump_template({"a": [1, 2]}, minimize=True) == '{"a":[1,2]}'

    def test_yaml_sorted_keys(self):
        """Test YAML output sorts keys."""
        assert dump_template({"b": 1, "a": 2}, "yaml") == "a: 2\nb: 1\n"

    def test_yaml_round_trip(self):
        """Test dumped YAML loads back to the same document."""
        document = {"Resources": {"A": {"Type": "AWS::SNS::Topic", "Properties": {"Ref": "B"}}}}
        assert yaml.safe_load(dump_template(document, "yaml")) == document


class TestWriteSplitResult:
    """Test suite for write_split_result."""

    @pytest.fixture
    def result(self):
        return SplitResult(
            child_stacks=[
                GeneratedStack(name="Networking", template={"Resources": {}}, resource_ids=[]),
                GeneratedStack(name="Compute", template={"Resources": {}}, resource_ids=[]),
            ],
            parent_stack=GeneratedStack(name="Parent", template={"Resources": {}}),
            suggestion=SplitSuggestion(recommended=SplitOption(strategy="Manual")),
        )

    def test_writes_one_file_per_stack(self, tmp_path, result):
        """Test files are named after their stacks, parent last."""
        written = write_split_result(result, tmp_path / "out")
        assert [path.name for path in written] == ["Networking.json", "Compute.json", "Parent.json"]
        assert json.loads(written[0].read_text(encoding="utf-8")) == {"Resources": {}}

    def test_yaml_extension(self, tmp_path, result):
        """Test YAML output uses the .yaml extension."""
        written = write_split_result(result, tmp_path, "yaml")
        assert all(path.suffix == ".yaml" for path in written)
        assert yaml.safe_load(written[-1].read_text(encoding="utf-8")) == {"Resources": {}}
