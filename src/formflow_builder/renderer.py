from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Mapping, Sequence

from markupsafe import Markup

from .conditional_logic import ConditionalLogicEvaluator
from .field_renderers import DEFAULT_FIELD_RENDERERS, FieldContext, FieldRenderFn
from .interaction import StepNavigator, StepState
from .markup import dom_id, join, json_script, tag
from .models.context import InstanceContext
from .models.results import VisibilityResult
from .models.schema import FieldNode, FormSchema, StepNode
from .registry import FieldTypeRegistry, default_registry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Scope:
    """Naming scope for nested inputs (repeater items)."""

    prefix: str | None = None
    values: Mapping[str, Any] | None = None


@dataclass
class _RenderPass:
    schema: FormSchema
    instance: InstanceContext
    values: Mapping[str, Any]
    visibility: VisibilityResult
    used_ids: set[str] = field(default_factory=set)
    anonymous: int = 0
    field_count: int = 0


def skip_unknown_type(ctx: FieldContext) -> Markup:
    """Default hook for types without a registered renderer."""
    logger.warning(
        "No renderer registered for field type",
        extra={"field_type": ctx.node.type, "field_name": ctx.node.name},
    )
    return Markup("")


class FormRenderer:
    """Compiles a form schema into markup plus its client rule program.

    Rendering is a pure function of (schema, instance context, form values):
    the same inputs always give byte-identical output. The one exception is
    an instance context that omits ``today``: date tokens and date-range
    presets then read the wall clock, so pass ``today`` explicitly when the
    output must be reproducible. Problems inside individual fields degrade
    to an empty field wrapper and are logged; they never abort the page.
    """

    def __init__(
        self,
        registry: FieldTypeRegistry | None = None,
        *,
        evaluator: ConditionalLogicEvaluator | None = None,
        field_renderers: Mapping[str, FieldRenderFn] | None = None,
        unknown_type_hook: FieldRenderFn | None = None,
        client_script_url: str | None = None,
    ) -> None:
        self._registry = registry or default_registry()
        self._evaluator = evaluator or ConditionalLogicEvaluator()
        self._renderers: dict[str, FieldRenderFn] = dict(field_renderers or DEFAULT_FIELD_RENDERERS)
        self._unknown_type_hook = unknown_type_hook or skip_unknown_type
        self._client_script_url = client_script_url

    def register_renderer(self, type_id: str, renderer: FieldRenderFn) -> None:
        self._renderers[type_id] = renderer

    def render(
        self,
        schema: FormSchema,
        instance_context: InstanceContext | Mapping[str, Any] | None = None,
        form_values: Mapping[str, Any] | None = None,
    ) -> Markup:
        instance = self._instance(instance_context)
        values = dict(form_values or {})
        program = self._evaluator.compile(schema)
        visibility = self._evaluator.interpret(program, values)
        state = _RenderPass(schema=schema, instance=instance, values=values, visibility=visibility)

        navigator = None
        if schema.steps:
            navigator = StepNavigator([step.id for step in schema.steps], hidden=visibility.hidden_steps)
        else:
            logger.warning("Rendering a form without steps", extra={"instance_id": instance.id})

        steps = [self._build_step(step, number, state, navigator) for number, step in enumerate(schema.steps, start=1)]
        current_step = navigator.visible_steps().index(navigator.current) + 1 if navigator and navigator.visible_steps() else 1

        form = tag(
            "form",
            {
                "class": "isf-form",
                "method": "post",
                "novalidate": True,
                "data-instance": str(instance.id),
                "data-current-step": str(current_step),
            },
            self._build_progress(schema, navigator, visibility),
            tag("input", {"type": "hidden", "name": "instance_id", "value": str(instance.id)}),
            tag("input", {"type": "hidden", "name": "current_step", "value": str(current_step)}),
            *steps,
            self._build_actions(schema, navigator),
            tag(
                "div",
                {"class": "isf-success-message", "role": "status", "hidden": True},
                schema.settings.success_message,
            ),
        )
        script_url = instance.client_script_url or self._client_script_url
        markup = tag(
            "div",
            {
                "class": "isf-form-container",
                "id": f"isf-form-{instance.id}",
                "data-instance": str(instance.id),
                "data-form-version": schema.version,
            },
            form,
            json_script(program, {"class": "isf-conditional-rules", "data-instance": str(instance.id)}),
            tag("script", {"src": script_url, "defer": True}) if script_url else None,
        )
        logger.info(
            "Rendered form",
            extra={
                "instance_id": instance.id,
                "step_count": len(schema.steps),
                "field_count": state.field_count,
                "hidden_field_count": len(visibility.hidden_fields),
            },
        )
        return markup

    def render_preview(self, schema: FormSchema, *, today: date | None = None) -> Markup:
        """Builder preview: no submitted values, placeholder instance."""
        instance = InstanceContext(id=0) if today is None else InstanceContext(id=0, today=today)
        return self.render(schema, instance, {})

    def _instance(self, context: InstanceContext | Mapping[str, Any] | None) -> InstanceContext:
        if context is None:
            return InstanceContext()
        if isinstance(context, InstanceContext):
            return context
        return InstanceContext.model_validate(context)

    def _build_progress(
        self, schema: FormSchema, navigator: StepNavigator | None, visibility: VisibilityResult
    ) -> Markup | None:
        if navigator is None or len(schema.steps) < 2 or not schema.settings.show_progress:
            return None
        states = navigator.states
        percent = navigator.progress_percent()
        items = []
        for number, step in enumerate(schema.steps, start=1):
            step_state = states[step.id]
            items.append(
                tag(
                    "li",
                    {
                        "class": ["isf-progress-step", f"isf-step-{step_state.value}"],
                        "data-step": str(number),
                        "data-step-id": step.id,
                        "aria-current": "step" if step_state is StepState.active else None,
                        "hidden": step.id in visibility.hidden_steps,
                    },
                    tag("span", {"class": "isf-progress-number"}, str(number)),
                    tag("span", {"class": "isf-progress-label"}, step.title or f"Step {number}"),
                )
            )
        return tag(
            "div",
            {
                "class": "isf-progress",
                "role": "progressbar",
                "aria-valuemin": "0",
                "aria-valuemax": "100",
                "aria-valuenow": str(percent),
            },
            tag(
                "div",
                {"class": "isf-progress-bar"},
                tag("div", {"class": "isf-progress-fill", "style": f"width: {percent}%"}),
            ),
            tag("ol", {"class": "isf-progress-steps"}, *items),
        )

    def _build_step(
        self, step: StepNode, number: int, state: _RenderPass, navigator: StepNavigator | None
    ) -> Markup:
        active = navigator is not None and navigator.current == step.id
        conditionally_hidden = step.id in state.visibility.hidden_steps
        title_id = dom_id("isf", str(state.instance.id), step.id, "title")
        fields = self._render_nodes(step.fields, state, _Scope())
        return tag(
            "div",
            {
                "class": [
                    "isf-step",
                    "active" if active else None,
                    "isf-conditional-hidden" if conditionally_hidden else None,
                ],
                "data-step": str(number),
                "data-step-id": step.id,
                "data-step-state": (StepState.active if active else StepState.pending).value,
                "role": "group",
                "aria-labelledby": title_id if step.title else None,
                "hidden": not active,
                "aria-hidden": "true" if conditionally_hidden else None,
            },
            tag("h3", {"class": "isf-step-title", "id": title_id}, step.title) if step.title else None,
            tag("p", {"class": "isf-step-description"}, step.description) if step.description else None,
            tag("div", {"class": "isf-step-fields"}, fields),
        )

    def _build_actions(self, schema: FormSchema, navigator: StepNavigator | None) -> Markup:
        visible = navigator.visible_steps() if navigator else []
        on_first = not visible or navigator.current == visible[0]
        on_last = navigator is None or navigator.is_last()
        settings = schema.settings
        return tag(
            "div",
            {"class": "isf-form-actions"},
            tag("button", {"type": "button", "class": "isf-btn isf-btn-prev", "hidden": on_first}, settings.prev_button_text),
            tag("button", {"type": "button", "class": "isf-btn isf-btn-next", "hidden": on_last}, settings.next_button_text),
            tag(
                "button",
                {"type": "submit", "class": "isf-btn isf-btn-submit", "hidden": not on_last},
                settings.submit_button_text,
            ),
        )

    def _render_nodes(self, nodes: Sequence[FieldNode], state: _RenderPass, scope: _Scope) -> Markup:
        return join(self._render_field(node, state, scope) for node in nodes)

    def _render_field(self, node: FieldNode, state: _RenderPass, scope: _Scope) -> Markup:
        state.field_count += 1
        visibility = state.visibility
        settings = self._registry.resolve_settings(node)
        key = node.key

        if scope.prefix is not None:
            input_name = f"{scope.prefix}[{node.name}]" if node.name else ""
            value = (scope.values or {}).get(node.name) if node.name else None
        else:
            input_name = node.name
            value = visibility.field_values[key] if key in visibility.field_values else state.values.get(node.name)

        statically_required = bool(settings.get("required"))
        hidden = visibility.is_hidden(key)
        required = visibility.is_required(key, statically_required)

        def render_children(
            children: Sequence[FieldNode], prefix: str | None, values: Mapping[str, Any] | None
        ) -> Markup:
            child_scope = scope if prefix is None else _Scope(prefix=prefix, values=values or {})
            return self._render_nodes(children, state, child_scope)

        ctx = FieldContext(
            node=node,
            definition=self._registry.get(node.type),
            settings=settings,
            field_id=self._field_id(node, input_name, state),
            input_name=input_name,
            value=value,
            required=required,
            disabled=visibility.is_disabled(key),
            hidden=hidden,
            instance=state.instance,
            render_children=render_children,
        )

        routine = self._renderers.get(node.type)
        try:
            body = routine(ctx) if routine else self._unknown_type_hook(ctx)
        except Exception:
            logger.warning(
                "Field failed to render; emitting an empty wrapper",
                extra={"field_type": node.type, "field_name": node.name},
                exc_info=True,
            )
            body = Markup("")

        return tag(
            "div",
            {
                "class": [
                    "isf-field-wrapper",
                    f"isf-field-type-{node.type or 'unknown'}",
                    "isf-required" if required else None,
                    "isf-conditional-hidden" if hidden else None,
                    "isf-field-disabled" if ctx.disabled else None,
                ],
                "data-field-type": node.type,
                "data-field-key": key or None,
                "data-field-name": input_name or None,
                "data-static-required": "true" if statically_required else None,
                "hidden": hidden,
                "aria-hidden": "true" if hidden else None,
            },
            body,
        )

    def _field_id(self, node: FieldNode, input_name: str, state: _RenderPass) -> str:
        if input_name:
            base = dom_id("isf", input_name)
        elif node.id:
            base = dom_id("isf", node.id)
        else:
            state.anonymous += 1
            base = f"isf_field_{state.anonymous}"
        candidate, suffix = base, 1
        while candidate in state.used_ids:
            suffix += 1
            candidate = f"{base}_{suffix}"
        state.used_ids.add(candidate)
        return candidate


__all__ = ["FormRenderer", "skip_unknown_type"]
