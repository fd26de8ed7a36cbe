"""
Split Generator

Materializes a split suggestion as child stack templates wired together
with exports and ``Fn::ImportValue``, plus a parent orchestrator stack that
deploys the children as nested stacks in dependency order.
"""

from typing import Any

import structlog

from ..constants import (
    CONDITION,
    CONDITIONS,
    DEFAULT_DESCRIPTION,
    DEPENDS_ON,
    DESCRIPTION,
    FIND_IN_MAP,
    FORMAT_VERSION,
    GET_ATT,
    IF,
    IMPORT_VALUE,
    MAPPINGS,
    NESTED_STACK_TYPE,
    OUTPUTS,
    PARAMETERS,
    PARENT_STACK_NAME,
    PROPERTIES,
    REF,
    RESOURCES,
    SUB,
    TEMPLATE_URL_PARAMETER,
    TYPE,
)
from ..models.graph import DependencyGraph
from ..models.split import GeneratedStack, SplitOptions, SplitResult, SplitSuggestion
from ..utils import as_list, iter_mappings, parse_get_att, parse_ref, sanitize_identifier, sub_variables
from .graph_builder import validate_template
from .ordering import order_stacks, stack_dependencies

# (logical ID, attribute or None) of a value exported by a stack
ExportKey = tuple[str, str | None]


def export_name(prefix: str, stack: str, logical_id: str, attribute: str | None = None) -> str:
    """Deterministic export name for a value owned by ``stack``.

    Examples:
        >>> export_name("Stack", "IAM", "Role", "Arn")
        'Stack-IAM-Role-Arn'
        >>> export_name("Stack", "Networking", "VPC")
        'Stack-Networking-VPC'
    """
    name = f"{prefix}-{stack}-{logical_id}"
    if attribute:
        name = f"{name}-{sanitize_identifier(attribute)}"
    return name


def export_output_id(logical_id: str, attribute: str | None = None) -> str:
    """Output logical ID carrying an export, e.g. ``ExportRoleArn``."""
    return f"Export{sanitize_identifier(logical_id)}{sanitize_identifier(attribute or '')}"


def nested_stack_id(stack: str) -> str:
    """Parent-template logical ID of a child stack's nested stack resource."""
    return f"{sanitize_identifier(stack)}Stack"


class CrossStackRewriter:
    """Rewrites references to resources owned by other stacks as imports.

    Every import produced is recorded in ``imports`` so the owning stack can
    export the value.
    """

    def __init__(self, stack: str, stack_of: dict[str, str], prefix: str):
        self.stack = stack
        self.stack_of = stack_of
        self.prefix = prefix
        self.imports: dict[str, set[ExportKey]] = {}

    def rewrite_resource(self, resource: dict[str, Any]) -> dict[str, Any]:
        """Copy a resource, importing foreign values and dropping foreign DependsOn."""
        rewritten: dict[str, Any] = {}
        for key, value in resource.items():
            if key == DEPENDS_ON:
                local = [
                    dependency
                    for dependency in as_list(value)
                    if not isinstance(dependency, str)
                    or self.stack_of.get(dependency, self.stack) == self.stack
                ]
                if not local:
                    continue
                rewritten[key] = local if isinstance(value, list) else local[0]
            else:
                rewritten[key] = self.rewrite(value)
        return rewritten

    def rewrite(self, value: Any) -> Any:
        """Return a rewritten deep copy of a template value."""
        if isinstance(value, list):
            return [self.rewrite(item) for item in value]
        if not isinstance(value, dict):
            return value

        if len(value) == 1:
            if SUB in value:
                return {SUB: self._rewrite_sub(value[SUB])}
            target = parse_ref(value)
            if target is not None:
                imported = self._import(target, None)
                if imported is not None:
                    return imported
            get_att = parse_get_att(value)
            if get_att is not None:
                imported = self._import(*get_att)
                if imported is not None:
                    return imported

        return {key: self.rewrite(item) for key, item in value.items()}

    def _rewrite_sub(self, sub: Any) -> Any:
        """Bind ``${Res}`` / ``${Res.Attr}`` naming foreign resources to imports.

        Uses the ``[template, {Var: value}]`` form. Dotted names are replaced
        with an alphanumeric variable since variable map keys cannot hold a dot.
        """
        if isinstance(sub, str):
            text, bindings = sub, {}
        elif (
            isinstance(sub, list)
            and len(sub) == 2
            and isinstance(sub[0], str)
            and isinstance(sub[1], dict)
        ):
            text = sub[0]
            bindings = {name: self.rewrite(item) for name, item in sub[1].items()}
        else:
            return self.rewrite(sub)

        variables = list(dict.fromkeys(sub_variables({SUB: text})))
        taken = set(bindings) | set(variables)
        for variable in variables:
            if variable in bindings:
                continue
            logical_id, _, attribute = variable.partition(".")
            value = self._import(logical_id, attribute or None)
            if value is None:
                continue

            name = variable
            if "." in variable:
                base = name = sanitize_identifier(variable)
                suffix = 1
                while name in taken:
                    suffix += 1
                    name = f"{base}{suffix}"
                taken.add(name)
                text = text.replace(f"${{{variable}}}", f"${{{name}}}")
            bindings[name] = value

        if bindings or isinstance(sub, list):
            return [text, bindings]
        return text

    def _import(self, logical_id: str, attribute: str | None) -> dict[str, str] | None:
        owner = self.stack_of.get(logical_id)
        if owner is None or owner == self.stack:
            return None
        self.imports.setdefault(owner, set()).add((logical_id, attribute))
        return {IMPORT_VALUE: export_name(self.prefix, owner, logical_id, attribute)}


def find_section_usage(values: list[Any], template: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Parameters, mappings and conditions a set of template values needs.

    Scans Ref, ``${Name}`` in Fn::Sub, Fn::FindInMap, Fn::If and
    ``Condition`` keys. Condition definitions are followed transitively for
    their own parameter, mapping and condition use.

    Args:
        values: Template values to scan (resources, outputs)
        template: The original template providing the section definitions

    Returns:
        Section name → used entries, in original template order; sections
        with no used entries are omitted
    """
    parameters = template.get(PARAMETERS) or {}
    mappings = template.get(MAPPINGS) or {}
    conditions = template.get(CONDITIONS) or {}
    used: dict[str, set[str]] = {PARAMETERS: set(), MAPPINGS: set(), CONDITIONS: set()}

    def scan(value: Any) -> list[str]:
        found_conditions = []
        for node in iter_mappings(value):
            target = parse_ref(node)
            if target in parameters:
                used[PARAMETERS].add(target)
            for variable in sub_variables(node):
                if variable in parameters:
                    used[PARAMETERS].add(variable)
            find_in_map = node.get(FIND_IN_MAP)
            if (
                isinstance(find_in_map, list)
                and find_in_map
                and isinstance(find_in_map[0], str)
                and find_in_map[0] in mappings
            ):
                used[MAPPINGS].add(find_in_map[0])
            fn_if = node.get(IF)
            if isinstance(fn_if, list) and fn_if and isinstance(fn_if[0], str):
                found_conditions.append(fn_if[0])
            condition = node.get(CONDITION)
            if isinstance(condition, str):
                found_conditions.append(condition)
        return [name for name in found_conditions if name in conditions]

    pending: list[str] = []
    for value in values:
        pending.extend(scan(value))
    while pending:
        name = pending.pop()
        if name in used[CONDITIONS]:
            continue
        used[CONDITIONS].add(name)
        pending.extend(scan(conditions[name]))

    sections: dict[str, dict[str, Any]] = {}
    for section, definitions in ((PARAMETERS, parameters), (MAPPINGS, mappings), (CONDITIONS, conditions)):
        entries = {name: definition for name, definition in definitions.items() if name in used[section]}
        if entries:
            sections[section] = entries
    return sections


class SplitGenerator:
    """Generates child and parent stack templates for a split suggestion."""

    def __init__(self, options: SplitOptions | None = None):
        self.options = options or SplitOptions()
        self.logger = structlog.get_logger()

    def generate(
        self,
        template: dict[str, Any],
        graph: DependencyGraph,
        suggestion: SplitSuggestion,
    ) -> SplitResult:
        """Generate the stacks for the suggestion's recommended option.

        Args:
            template: Original template (not modified)
            graph: Dependency graph of the template
            suggestion: Split suggestion whose recommended option is applied

        Returns:
            SplitResult with one child stack per cluster and, when enabled, the
            parent orchestrator stack
        """
        resources = validate_template(template)
        option = suggestion.recommended
        prefix = self.options.stack_name_prefix
        stack_of = {
            logical_id: cluster.name
            for cluster in option.clusters
            for logical_id in cluster.resource_ids
            if logical_id in resources
        }

        rewriters = {
            cluster.name: CrossStackRewriter(cluster.name, stack_of, prefix)
            for cluster in option.clusters
        }
        child_resources = {
            cluster.name: {
                logical_id: rewriters[cluster.name].rewrite_resource(resources[logical_id])
                for logical_id in cluster.resource_ids
                if logical_id in resources
            }
            for cluster in option.clusters
        }
        child_outputs = self._assign_outputs(template, graph, option.deployment_order, stack_of, rewriters)

        # Imports also come from outputs and Fn::Sub, which are not graph edges
        depends_on = {
            name: set(targets)
            for name, targets in stack_dependencies(option.cross_stack_dependencies).items()
        }
        exports: dict[str, set[ExportKey]] = {}
        for importer, rewriter in rewriters.items():
            for owner, keys in rewriter.imports.items():
                exports.setdefault(owner, set()).update(keys)
                depends_on.setdefault(importer, set()).add(owner)

        child_stacks = []
        for cluster in option.clusters:
            child_template = self._child_template(
                template,
                cluster.name,
                child_resources[cluster.name],
                child_outputs.get(cluster.name, {}),
                exports.get(cluster.name, set()),
            )
            child_stacks.append(
                GeneratedStack(
                    name=cluster.name,
                    template=child_template,
                    resource_ids=list(cluster.resource_ids),
                )
            )

        parent_stack = None
        if self.options.generate_parent:
            parent_stack = self._parent_stack(
                template, option.deployment_order, child_stacks, depends_on
            )

        self.logger.info(
            "Generated split stacks",
            strategy=option.strategy,
            child_stacks=len(child_stacks),
            exports=sum(len(keys) for keys in exports.values()),
            parent=parent_stack is not None,
        )
        return SplitResult(child_stacks=child_stacks, parent_stack=parent_stack, suggestion=suggestion)

    def _assign_outputs(
        self,
        template: dict[str, Any],
        graph: DependencyGraph,
        deployment_order: list[str],
        stack_of: dict[str, str],
        rewriters: dict[str, CrossStackRewriter],
    ) -> dict[str, dict[str, Any]]:
        """Give each original output to the stack owning the first resource it references.

        Outputs referencing no resource go to the first stack deployed.
        """
        outputs: dict[str, dict[str, Any]] = {}
        fallback = deployment_order[0] if deployment_order else None
        for output_id, output in (template.get(OUTPUTS) or {}).items():
            owner = fallback
            for node in iter_mappings(output):
                target = parse_ref(node)
                if target is None:
                    get_att = parse_get_att(node)
                    target = get_att[0] if get_att else None
                if target in graph.resource_ids and target in stack_of:
                    owner = stack_of[target]
                    break
            if owner is None:
                continue
            outputs.setdefault(owner, {})[output_id] = rewriters[owner].rewrite(output)
        return outputs

    def _child_template(
        self,
        template: dict[str, Any],
        stack: str,
        resources: dict[str, Any],
        outputs: dict[str, Any],
        exports: set[ExportKey],
    ) -> dict[str, Any]:
        child: dict[str, Any] = {}
        if FORMAT_VERSION in template:
            child[FORMAT_VERSION] = template[FORMAT_VERSION]
        child[DESCRIPTION] = f"{template.get(DESCRIPTION) or DEFAULT_DESCRIPTION} - {stack}"
        child.update(find_section_usage([resources, outputs], template))
        child[RESOURCES] = resources

        child_outputs = dict(outputs)
        for logical_id, attribute in sorted(exports, key=lambda key: (key[0], key[1] or "")):
            label = f"{logical_id}.{attribute}" if attribute else logical_id
            value = {GET_ATT: [logical_id, attribute]} if attribute else {REF: logical_id}
            child_outputs[export_output_id(logical_id, attribute)] = {
                DESCRIPTION: f"Cross-stack export for {label}",
                "Value": value,
                "Export": {"Name": export_name(self.options.stack_name_prefix, stack, logical_id, attribute)},
            }
        if child_outputs:
            child[OUTPUTS] = child_outputs
        return child

    def _parent_stack(
        self,
        template: dict[str, Any],
        deployment_order: list[str],
        child_stacks: list[GeneratedStack],
        depends_on: dict[str, set[str]],
    ) -> GeneratedStack:
        children = {stack.name: stack for stack in child_stacks}
        preferred = [name for name in deployment_order if name in children]
        preferred += [name for name in children if name not in preferred]
        order, unordered = order_stacks(preferred, depends_on)
        if unordered:
            self.logger.warning("Cyclic imports between child stacks", stacks=unordered)
        extension = self.options.template_format

        parent: dict[str, Any] = {}
        if FORMAT_VERSION in template:
            parent[FORMAT_VERSION] = template[FORMAT_VERSION]
        parent[DESCRIPTION] = f"{template.get(DESCRIPTION) or DEFAULT_DESCRIPTION} - Parent Orchestrator"
        parent[PARAMETERS] = {
            **(template.get(PARAMETERS) or {}),
            TEMPLATE_URL_PARAMETER: {
                "Type": "String",
                DESCRIPTION: "Base URL where child stack templates are uploaded",
            },
        }

        nested: dict[str, Any] = {}
        for name in order:
            child = children[name]
            properties: dict[str, Any] = {
                "TemplateURL": {SUB: f"${{{TEMPLATE_URL_PARAMETER}}}/{name}.{extension}"}
            }
            child_parameters = child.template.get(PARAMETERS) or {}
            if child_parameters:
                properties[PARAMETERS] = {parameter: {REF: parameter} for parameter in child_parameters}

            resource: dict[str, Any] = {TYPE: NESTED_STACK_TYPE, PROPERTIES: properties}
            dependencies = sorted(
                nested_stack_id(target)
                for target in depends_on.get(name, set())
                if target != name and target in children
            )
            if dependencies:
                resource[DEPENDS_ON] = dependencies
            nested[nested_stack_id(name)] = resource

        parent[RESOURCES] = nested
        return GeneratedStack(name=PARENT_STACK_NAME, template=parent, resource_ids=[])


def generate_split(
    template: dict[str, Any],
    graph: DependencyGraph,
    suggestion: SplitSuggestion,
    options: SplitOptions | None = None,
) -> SplitResult:
    """Generate child and parent stacks for a split suggestion."""
    return SplitGenerator(options).generate(template, graph, suggestion)
