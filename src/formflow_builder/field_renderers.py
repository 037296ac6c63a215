"""Per-type field rendering routines.

Each routine receives a :class:`FieldContext` and returns the markup that goes
inside the field wrapper: label, control(s), help text and the error slot.
The renderer owns the wrapper, visibility flags and recursion; routines for
container types call back into it through ``FieldContext.render_children``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from markupsafe import Markup

from .conditional_logic import as_text, is_checked
from .field_types import DEFAULT_PROGRAMS, DEVICE_CATALOG, REGIONS
from .interaction import RepeaterCounter, clamp_number, format_number, normalize_hex_color
from .markup import dom_id, join, tag
from .models.context import InstanceContext, ProgramOption
from .models.field_type import FieldTypeDefinition
from .models.schema import FieldNode

logger = logging.getLogger(__name__)

REPEATER_PLACEHOLDER = "__INDEX__"

ChildRenderer = Callable[[Sequence[FieldNode], "str | None", "Mapping[str, Any] | None"], Markup]


@dataclass
class FieldContext:
    node: FieldNode
    definition: FieldTypeDefinition | None
    settings: dict[str, Any]
    field_id: str
    input_name: str
    value: Any
    required: bool
    disabled: bool
    hidden: bool
    instance: InstanceContext
    render_children: ChildRenderer

    def setting(self, key: str, default: Any = None) -> Any:
        value = self.settings.get(key)
        return default if value is None or value == "" else value

    @property
    def label(self) -> str:
        return as_text(self.settings.get("label")).strip()

    @property
    def help_id(self) -> str | None:
        return f"{self.field_id}_help" if self.setting("help_text") else None

    @property
    def error_id(self) -> str:
        return f"{self.field_id}_error"

    def described_by(self) -> str:
        return " ".join(part for part in (self.help_id, self.error_id) if part)


FieldRenderFn = Callable[[FieldContext], Markup]


# -- shared pieces ----------------------------------------------------------


def _required_indicator(ctx: FieldContext) -> Markup | None:
    if not ctx.required:
        return None
    return tag("span", {"class": "isf-required-indicator", "aria-hidden": "true"}, "*")


def _label(ctx: FieldContext, *, target: str | None = None) -> Markup | None:
    if not ctx.label:
        return None
    return tag(
        "label",
        {"for": target or ctx.field_id, "id": f"{ctx.field_id}_label", "class": "isf-label"},
        ctx.label,
        _required_indicator(ctx),
    )


def _legend(ctx: FieldContext) -> Markup | None:
    if not ctx.label:
        return None
    return tag("legend", {"class": "isf-legend", "id": f"{ctx.field_id}_label"}, ctx.label, _required_indicator(ctx))


def _help(ctx: FieldContext) -> Markup | None:
    if not ctx.help_id:
        return None
    return tag("p", {"id": ctx.help_id, "class": "isf-help-text"}, as_text(ctx.setting("help_text")))


def _error_slot(ctx: FieldContext) -> Markup:
    return tag("div", {"id": ctx.error_id, "class": "isf-field-error", "role": "alert", "aria-live": "polite"})


def _control_attrs(ctx: FieldContext, **extra: Any) -> dict[str, Any]:
    attrs: dict[str, Any] = {
        "id": ctx.field_id,
        "name": ctx.input_name,
        "class": "isf-input",
        "required": ctx.required,
        "aria-required": "true" if ctx.required else None,
        "disabled": ctx.disabled,
        "aria-disabled": "true" if ctx.disabled else None,
        "aria-describedby": ctx.described_by(),
    }
    attrs.update(extra)
    return attrs


def _group(ctx: FieldContext, css_class: str, *controls: Any) -> Markup:
    """Fieldset for multi-control inputs (radio groups, address parts...)."""
    return join(
        [
            tag(
                "fieldset",
                {
                    "class": ["isf-fieldset", css_class],
                    "id": ctx.field_id,
                    "aria-describedby": ctx.described_by(),
                    "aria-required": "true" if ctx.required else None,
                    "disabled": ctx.disabled,
                    "aria-disabled": "true" if ctx.disabled else None,
                },
                _legend(ctx),
                *controls,
            ),
            _help(ctx),
            _error_slot(ctx),
        ]
    )


def _options(raw: Any) -> list[tuple[str, str]]:
    """Normalize builder option lists: strings, {value,label} dicts or a value->label map."""
    if isinstance(raw, Mapping):
        return [(as_text(value), as_text(label)) for value, label in raw.items()]
    options: list[tuple[str, str]] = []
    for item in raw or ():
        if isinstance(item, Mapping):
            value = as_text(item.get("value", item.get("label")))
            options.append((value, as_text(item.get("label", value))))
        else:
            options.append((as_text(item), as_text(item)))
    return options


def _selected(value: Any) -> set[str]:
    if isinstance(value, (list, tuple, set)):
        return {as_text(item) for item in value}
    return {as_text(value)} if value not in (None, "") else set()


def _resolve_date(raw: Any, ctx: FieldContext) -> str | None:
    text = as_text(raw).strip()
    if not text:
        return None
    return ctx.instance.today.isoformat() if text.lower() == "today" else text


# -- basic inputs -------------------------------------------------------------


def render_text_input(ctx: FieldContext, input_type: str = "text", **extra: Any) -> Markup:
    options = {
        "type": input_type,
        "value": as_text(ctx.value) if ctx.value is not None else None,
        "placeholder": ctx.setting("placeholder"),
        "maxlength": ctx.setting("max_length"),
        "pattern": ctx.setting("pattern"),
    }
    options.update(extra)
    attrs = _control_attrs(ctx, **options)
    return join([_label(ctx), tag("input", attrs), _help(ctx), _error_slot(ctx)])


def render_email(ctx: FieldContext) -> Markup:
    return render_text_input(ctx, "email", autocomplete="email")


def render_phone(ctx: FieldContext) -> Markup:
    return render_text_input(ctx, "tel", autocomplete="tel", **{"data-format": ctx.setting("format", "us")})


def render_number(ctx: FieldContext) -> Markup:
    return render_text_input(
        ctx, "number", min=ctx.setting("min"), max=ctx.setting("max"), step=ctx.setting("step")
    )


def render_account_number(ctx: FieldContext) -> Markup:
    return render_text_input(
        ctx,
        "text",
        inputmode="numeric",
        autocomplete="off",
        **{
            "data-mask": ctx.setting("mask"),
            "data-validate-api": "true" if ctx.setting("validate_api") else None,
        },
    )


def render_textarea(ctx: FieldContext) -> Markup:
    attrs = _control_attrs(
        ctx,
        rows=ctx.setting("rows", 4),
        placeholder=ctx.setting("placeholder"),
        maxlength=ctx.setting("max_length"),
    )
    attrs["class"] = "isf-input isf-textarea"
    return join([_label(ctx), tag("textarea", attrs, as_text(ctx.value)), _help(ctx), _error_slot(ctx)])


# -- selection ----------------------------------------------------------------


def _select_control(ctx: FieldContext, options: list[tuple[str, str]], placeholder: str | None) -> Markup:
    chosen = _selected(ctx.value)
    items = []
    if placeholder:
        items.append(tag("option", {"value": ""}, placeholder))
    for value, label in options:
        items.append(tag("option", {"value": value, "selected": value in chosen}, label))
    attrs = _control_attrs(ctx)
    attrs["class"] = "isf-input isf-select"
    attrs["data-searchable"] = "true" if ctx.setting("searchable") else None
    return tag("select", attrs, *items)


def render_select(ctx: FieldContext) -> Markup:
    control = _select_control(ctx, _options(ctx.setting("options")), ctx.setting("placeholder"))
    return join([_label(ctx), control, _help(ctx), _error_slot(ctx)])


def _choice_list(ctx: FieldContext, input_type: str, options: list[tuple[str, str]], name: str) -> Markup:
    chosen = _selected(ctx.value)
    choices = []
    for position, (value, label) in enumerate(options):
        option_id = f"{ctx.field_id}_{position}"
        choices.append(
            tag(
                "label",
                {"class": f"isf-{input_type}-option", "for": option_id},
                tag(
                    "input",
                    {
                        "type": input_type,
                        "id": option_id,
                        "name": name,
                        "value": value,
                        "checked": value in chosen,
                        "required": ctx.required and input_type == "radio",
                        "disabled": ctx.disabled,
                    },
                ),
                tag("span", {"class": "isf-option-label"}, label),
            )
        )
    return join(choices)


def render_radio(ctx: FieldContext) -> Markup:
    layout = ctx.setting("layout", "vertical")
    return _group(
        ctx,
        f"isf-radio-group isf-layout-{layout}",
        _choice_list(ctx, "radio", _options(ctx.setting("options")), ctx.input_name),
    )


def render_checkbox(ctx: FieldContext) -> Markup:
    group = _group(
        ctx,
        "isf-checkbox-group",
        _choice_list(ctx, "checkbox", _options(ctx.setting("options")), f"{ctx.input_name}[]"),
    )
    limits = {"data-min-select": ctx.setting("min_select"), "data-max-select": ctx.setting("max_select")}
    if any(value is not None for value in limits.values()):
        return tag("div", {"class": "isf-checkbox-limits", **limits}, group)
    return group


def render_toggle(ctx: FieldContext) -> Markup:
    on = is_checked(ctx.value) if ctx.value is not None else bool(ctx.setting("default_value", False))
    switch = tag(
        "label",
        {"class": "isf-toggle", "for": ctx.field_id},
        tag("input", {"type": "hidden", "name": ctx.input_name, "value": "0"}),
        tag(
            "input",
            _control_attrs(ctx, type="checkbox", value="1", checked=on, role="switch", **{"class": "isf-toggle-input"}),
        ),
        tag("span", {"class": "isf-toggle-slider", "aria-hidden": "true"}),
        tag(
            "span",
            {
                "class": "isf-toggle-state",
                "data-on": ctx.setting("on_label", "Yes"),
                "data-off": ctx.setting("off_label", "No"),
            },
            ctx.setting("on_label", "Yes") if on else ctx.setting("off_label", "No"),
        ),
    )
    return join([_label(ctx), switch, _help(ctx), _error_slot(ctx)])


# -- advanced -----------------------------------------------------------------


def render_date(ctx: FieldContext) -> Markup:
    return render_text_input(
        ctx,
        "date",
        min=_resolve_date(ctx.setting("min_date"), ctx),
        max=_resolve_date(ctx.setting("max_date"), ctx),
        **{"data-disable-weekends": "true" if ctx.setting("disable_weekends") else None},
    )


def render_time(ctx: FieldContext) -> Markup:
    interval = clamp_number(ctx.setting("interval", "30"), 1, 24 * 60)
    return render_text_input(
        ctx,
        "time",
        min=ctx.setting("min_time"),
        max=ctx.setting("max_time"),
        step=format_number(interval * 60) if interval else None,
    )


def render_file(ctx: FieldContext) -> Markup:
    allowed = [ext.strip().lstrip(".") for ext in as_text(ctx.setting("allowed_types")).split(",") if ext.strip()]
    multiple = bool(ctx.setting("multiple"))
    control = tag(
        "input",
        _control_attrs(
            ctx,
            type="file",
            name=f"{ctx.input_name}[]" if multiple else ctx.input_name,
            accept=",".join(f".{ext}" for ext in allowed) or None,
            multiple=multiple,
            **{"class": "isf-file-input", "data-max-size": ctx.setting("max_size", 5)},
        ),
    )
    dropzone = tag(
        "div",
        {
            "class": "isf-file-dropzone",
            "data-upload-url": ctx.setting("upload_url"),
            "data-state": "idle",
        },
        control,
        tag("p", {"class": "isf-file-instructions"}, "Drag files here or click to browse"),
        tag(
            "div",
            {"class": "isf-file-progress", "hidden": True},
            tag(
                "progress",
                {"id": f"{ctx.field_id}_progress", "max": "100", "value": "0"},
            ),
            tag("button", {"type": "button", "class": "isf-file-cancel"}, "Cancel upload"),
        ),
        tag("ul", {"class": "isf-file-list", "aria-live": "polite"}),
    )
    return join([_label(ctx), dropzone, _help(ctx), _error_slot(ctx)])


def render_signature(ctx: FieldContext) -> Markup:
    width = clamp_number(ctx.setting("width", 400), 100, 2000) or 400
    height = clamp_number(ctx.setting("height", 150), 50, 1000) or 150
    pad = tag(
        "div",
        {"class": "isf-signature-pad", "data-state": "empty"},
        tag(
            "canvas",
            {
                "id": f"{ctx.field_id}_canvas",
                "width": format_number(width),
                "height": format_number(height),
                "aria-labelledby": f"{ctx.field_id}_label" if ctx.label else None,
                "role": "img",
            },
        ),
        tag(
            "input",
            _control_attrs(ctx, type="hidden", value=as_text(ctx.value) or None, **{"class": "isf-signature-data"}),
        ),
        tag("button", {"type": "button", "class": "isf-signature-clear", "disabled": ctx.disabled}, "Clear"),
    )
    return join([_label(ctx, target=f"{ctx.field_id}_canvas"), pad, _help(ctx), _error_slot(ctx)])


_LIKERT_LABELS = {
    3: ("Disagree", "Neutral", "Agree"),
    5: ("Strongly Disagree", "Disagree", "Neutral", "Agree", "Strongly Agree"),
    7: (
        "Strongly Disagree",
        "Disagree",
        "Somewhat Disagree",
        "Neutral",
        "Somewhat Agree",
        "Agree",
        "Strongly Agree",
    ),
}


def render_likert_scale(ctx: FieldContext) -> Markup:
    points = int(clamp_number(ctx.setting("scale_type", "5"), 2, 10) or 5)
    custom = [label.strip() for label in as_text(ctx.setting("labels")).split(",") if label.strip()]
    labels = custom if len(custom) == points else list(_LIKERT_LABELS.get(points, ()))
    show_labels = bool(ctx.setting("show_labels", True))
    options = [
        (str(point), labels[point - 1] if show_labels and labels else str(point)) for point in range(1, points + 1)
    ]
    return _group(ctx, f"isf-likert isf-likert-{points}", _choice_list(ctx, "radio", options, ctx.input_name))


def render_slider(ctx: FieldContext) -> Markup:
    minimum, maximum, step = ctx.setting("min", 0), ctx.setting("max", 100), ctx.setting("step", 1)
    initial = ctx.value if ctx.value not in (None, "") else ctx.setting("default_value", minimum)
    current = format_number(clamp_number(initial, minimum, maximum, step))
    control = tag(
        "input",
        _control_attrs(
            ctx,
            type="range",
            min=format_number(clamp_number(minimum)),
            max=format_number(clamp_number(maximum)),
            step=format_number(clamp_number(step)),
            value=current,
            **{"class": "isf-slider", "aria-valuenow": current},
        ),
    )
    display = None
    if ctx.setting("show_value", True):
        display = tag(
            "output",
            {
                "id": f"{ctx.field_id}_display",
                "for": ctx.field_id,
                "class": "isf-slider-value",
                "data-prefix": ctx.setting("prefix", ""),
                "data-suffix": ctx.setting("suffix", ""),
            },
            f"{ctx.setting('prefix', '')}{current}{ctx.setting('suffix', '')}",
        )
    return join([_label(ctx), tag("div", {"class": "isf-slider-wrap"}, control, display), _help(ctx), _error_slot(ctx)])


def render_recaptcha(ctx: FieldContext) -> Markup:
    # The secret key stays server-side; only the public site key is emitted.
    return tag(
        "input",
        {
            "type": "hidden",
            "id": ctx.field_id,
            "name": ctx.input_name or "isf_recaptcha_token",
            "class": "isf-recaptcha-token",
            "data-site-key": ctx.setting("site_key"),
            "data-action": ctx.setting("action", "submit"),
        },
    ) + _error_slot(ctx)


def render_star_rating(ctx: FieldContext) -> Markup:
    stars = int(clamp_number(ctx.setting("max_stars", "5"), 1, 10) or 5)
    show_labels = bool(ctx.setting("show_labels"))
    chosen = _selected(ctx.value)
    items = []
    for star in range(1, stars + 1):
        star_id = f"{ctx.field_id}_{star}"
        text = f"{star} star" if star == 1 else f"{star} stars"
        items.append(
            tag(
                "label",
                {"for": star_id, "class": "isf-star", "title": text},
                tag(
                    "input",
                    {
                        "type": "radio",
                        "id": star_id,
                        "name": ctx.input_name,
                        "value": str(star),
                        "checked": str(star) in chosen,
                        "required": ctx.required and star == 1,
                        "disabled": ctx.disabled,
                        "aria-label": text,
                    },
                ),
                tag("span", {"class": "isf-star-icon", "aria-hidden": "true"}, "★"),
                tag("span", {"class": "isf-star-label"}, text) if show_labels else None,
            )
        )
    size = ctx.setting("star_size", "medium")
    return _group(ctx, f"isf-star-rating isf-star-{size}", tag("div", {"class": "isf-stars"}, *items))


_DATE_PRESETS = (
    ("today", "Today"),
    ("next_7_days", "Next 7 days"),
    ("next_30_days", "Next 30 days"),
    ("this_month", "This month"),
)


def render_date_range(ctx: FieldContext) -> Markup:
    value = ctx.value if isinstance(ctx.value, Mapping) else {}
    bounds = {"min": _resolve_date(ctx.setting("min_date"), ctx), "max": _resolve_date(ctx.setting("max_date"), ctx)}
    start_id, end_id = f"{ctx.field_id}_start", f"{ctx.field_id}_end"

    def part(part_id: str, key: str, label: str) -> Markup:
        return tag(
            "div",
            {"class": f"isf-date-range-{key}"},
            tag("label", {"for": part_id, "class": "isf-sublabel"}, label),
            tag(
                "input",
                {
                    "type": "date",
                    "id": part_id,
                    "name": f"{ctx.input_name}[{key}]",
                    "value": as_text(value.get(key)) or None,
                    "required": ctx.required,
                    "disabled": ctx.disabled,
                    "class": "isf-input",
                    **bounds,
                },
            ),
        )

    presets = None
    if ctx.setting("preset_ranges", True):
        presets = tag(
            "div",
            {"class": "isf-date-presets", "data-today": ctx.instance.today.isoformat()},
            *(
                tag("button", {"type": "button", "class": "isf-date-preset", "data-preset": key}, label)
                for key, label in _DATE_PRESETS
            ),
        )
    return _group(
        ctx,
        "isf-date-range",
        presets,
        tag("div", {"class": "isf-date-range-inputs"}, part(start_id, "start", "Start date"), part(end_id, "end", "End date")),
    )


def render_address_autocomplete(ctx: FieldContext) -> Markup:
    return render_text_input(
        ctx,
        "text",
        autocomplete="street-address",
        **{
            "class": "isf-input isf-address-autocomplete",
            "data-countries": ctx.setting("countries", "us"),
            "data-places": "true" if ctx.setting("api_key") else None,
        },
    )


def render_number_stepper(ctx: FieldContext) -> Markup:
    minimum, maximum, step = ctx.setting("min", 0), ctx.setting("max", 100), ctx.setting("step", 1)
    initial = ctx.value if ctx.value not in (None, "") else ctx.setting("default_value", minimum)
    current = clamp_number(initial, minimum, maximum, step)
    low, high = clamp_number(minimum), clamp_number(maximum)
    control = tag(
        "input",
        _control_attrs(
            ctx,
            type="number",
            min=format_number(low),
            max=format_number(high),
            step=format_number(clamp_number(step)),
            value=format_number(current),
            inputmode="numeric",
            **{"class": "isf-input isf-stepper-input"},
        ),
    )
    stepper = tag(
        "div",
        {"class": ["isf-number-stepper", f"isf-stepper-{ctx.setting('size', 'medium')}"]},
        tag(
            "button",
            {
                "type": "button",
                "class": "isf-stepper-decrement",
                "aria-label": "Decrease",
                "disabled": ctx.disabled or (current is not None and low is not None and current <= low),
            },
            "−",
        ),
        control,
        tag(
            "button",
            {
                "type": "button",
                "class": "isf-stepper-increment",
                "aria-label": "Increase",
                "disabled": ctx.disabled or (current is not None and high is not None and current >= high),
            },
            "+",
        ),
    )
    return join([_label(ctx), stepper, _help(ctx), _error_slot(ctx)])


def render_color_picker(ctx: FieldContext) -> Markup:
    default = normalize_hex_color(ctx.setting("default_color", "#000000"))
    current = normalize_hex_color(ctx.value, default) if ctx.value else default
    presets = [normalize_hex_color(color, "") for color in as_text(ctx.setting("preset_colors")).split(",")]
    swatches = tag(
        "div",
        {"class": "isf-color-presets"},
        *(
            tag(
                "button",
                {
                    "type": "button",
                    "class": "isf-color-swatch",
                    "data-color": color,
                    "style": f"background-color: {color}",
                    "aria-label": color,
                    "disabled": ctx.disabled,
                },
            )
            for color in presets
            if color
        ),
    )
    picker = tag(
        "div",
        {"class": "isf-color-picker", "data-alpha": "true" if ctx.setting("show_alpha") else None},
        tag("input", _control_attrs(ctx, type="color", value=current, **{"class": "isf-color-input"})),
        tag(
            "input",
            {
                "type": "text",
                "id": f"{ctx.field_id}_hex",
                "class": "isf-color-hex",
                "value": current,
                "maxlength": "7",
                "aria-label": f"{ctx.label or 'Color'} hex value",
                "disabled": ctx.disabled,
            },
        ),
        swatches,
    )
    return join([_label(ctx), picker, _help(ctx), _error_slot(ctx)])


# -- address ------------------------------------------------------------------


def _sub_input(ctx: FieldContext, key: str, label: str, value: Any, *, required: bool, **extra: Any) -> Markup:
    part_id = dom_id(ctx.field_id, key)
    return tag(
        "div",
        {"class": f"isf-address-{key}"},
        tag("label", {"for": part_id, "class": "isf-sublabel"}, label),
        tag(
            "input",
            {
                "type": "text",
                "id": part_id,
                "name": f"{ctx.input_name}[{key}]",
                "value": as_text(value) or None,
                "class": "isf-input",
                "required": required,
                "disabled": ctx.disabled,
                **extra,
            },
        ),
    )


def _region_select(ctx: FieldContext, country: str, **attrs: Any) -> Markup:
    chosen = _selected(ctx.value if not isinstance(ctx.value, Mapping) else ctx.value.get("state"))
    regions = REGIONS.get(country.upper(), REGIONS["US"])
    return tag(
        "select",
        attrs,
        tag("option", {"value": ""}, "Select..."),
        *(tag("option", {"value": code, "selected": code in chosen}, name) for code, name in regions.items()),
    )


def render_address(ctx: FieldContext) -> Markup:
    value = ctx.value if isinstance(ctx.value, Mapping) else {}
    state_id = dom_id(ctx.field_id, "state")
    parts = [
        _sub_input(
            ctx,
            "street",
            "Street Address",
            value.get("street"),
            required=ctx.required,
            autocomplete="address-line1",
            **{"data-autocomplete": "true" if ctx.setting("autocomplete", True) else None},
        ),
        _sub_input(ctx, "unit", "Apt/Unit", value.get("unit"), required=False, autocomplete="address-line2")
        if ctx.setting("include_unit", True)
        else None,
        _sub_input(ctx, "city", "City", value.get("city"), required=ctx.required, autocomplete="address-level2"),
        tag(
            "div",
            {"class": "isf-address-state"},
            tag("label", {"for": state_id, "class": "isf-sublabel"}, "State"),
            _region_select(
                ctx,
                "US",
                id=state_id,
                name=f"{ctx.input_name}[state]",
                required=ctx.required,
                disabled=ctx.disabled,
                autocomplete="address-level1",
                **{"class": "isf-input isf-select"},
            ),
        ),
        _sub_input(
            ctx, "zip", "ZIP Code", value.get("zip"), required=ctx.required, autocomplete="postal-code", inputmode="numeric"
        ),
    ]
    css = "isf-address isf-address-territory" if ctx.setting("validate_territory", True) else "isf-address"
    return _group(ctx, css, tag("div", {"class": "isf-address-grid"}, *parts))


def render_address_street(ctx: FieldContext) -> Markup:
    return render_text_input(
        ctx,
        "text",
        autocomplete="address-line1",
        **{"data-autocomplete": "true" if ctx.setting("autocomplete", True) else None},
    )


def render_address_city(ctx: FieldContext) -> Markup:
    return render_text_input(ctx, "text", autocomplete="address-level2")


def render_address_state(ctx: FieldContext) -> Markup:
    attrs = _control_attrs(ctx, autocomplete="address-level1")
    attrs["class"] = "isf-input isf-select"
    control = _region_select(ctx, as_text(ctx.setting("country", "US")), **attrs)
    return join([_label(ctx), control, _help(ctx), _error_slot(ctx)])


def render_address_zip(ctx: FieldContext) -> Markup:
    pattern = r"\d{5}(-\d{4})?" if ctx.setting("validate_format", True) else None
    return render_text_input(ctx, "text", autocomplete="postal-code", inputmode="numeric", pattern=pattern)


# -- utility ------------------------------------------------------------------


def render_device_type(ctx: FieldContext) -> Markup:
    category = as_text(ctx.setting("device_options", "thermostat"))
    if category == "custom":
        options = _options(ctx.setting("options"))
    else:
        options = list(DEVICE_CATALOG.get(category, DEVICE_CATALOG["thermostat"]).items())
    control = _select_control(ctx, options, "Select a device")
    return join([_label(ctx), control, _help(ctx), _error_slot(ctx)])


def render_program_selector(ctx: FieldContext) -> Markup:
    programs: Sequence[ProgramOption] = ctx.instance.programs or DEFAULT_PROGRAMS
    multiple = bool(ctx.setting("allow_multiple", True))
    chosen = _selected(ctx.value)
    cards = []
    for program in programs:
        option_id = dom_id(ctx.field_id, program.id)
        cards.append(
            tag(
                "label",
                {"class": "isf-program-card", "for": option_id},
                tag(
                    "input",
                    {
                        "type": "checkbox" if multiple else "radio",
                        "id": option_id,
                        "name": f"{ctx.input_name}[]" if multiple else ctx.input_name,
                        "value": program.id,
                        "checked": program.id in chosen,
                        "disabled": ctx.disabled,
                    },
                ),
                tag("span", {"class": ["isf-program-icon", "dashicons", program.icon], "aria-hidden": "true"}),
                tag("span", {"class": "isf-program-name"}, program.name),
                tag("span", {"class": "isf-program-description"}, program.description)
                if ctx.setting("show_descriptions", True) and program.description
                else None,
                tag("span", {"class": "isf-program-incentive"}, program.incentive)
                if ctx.setting("show_incentives", True) and program.incentive
                else None,
            )
        )
    return _group(ctx, "isf-program-selector", tag("div", {"class": "isf-program-cards"}, *cards))


# -- layout -------------------------------------------------------------------


def render_heading(ctx: FieldContext) -> Markup:
    level = as_text(ctx.setting("level", "h3")).lower()
    if level not in ("h2", "h3", "h4"):
        level = "h3"
    alignment = ctx.setting("alignment", "left")
    return tag(level, {"class": "isf-heading", "style": f"text-align: {alignment}"}, as_text(ctx.setting("text")))


def render_paragraph(ctx: FieldContext) -> Markup:
    lines = as_text(ctx.setting("content")).splitlines()
    return tag("div", {"class": "isf-paragraph"}, Markup("<br>").join(lines))


def render_divider(ctx: FieldContext) -> Markup:
    style, spacing = ctx.setting("style", "solid"), ctx.setting("spacing", "medium")
    return tag("hr", {"class": ["isf-divider", f"isf-divider-{style}", f"isf-spacing-{spacing}"]})


def render_spacer(ctx: FieldContext) -> Markup:
    height = format_number(clamp_number(ctx.setting("height", 20), 0, 500))
    return tag("div", {"class": "isf-spacer", "style": f"height: {height}px", "aria-hidden": "true"})


# -- containers ---------------------------------------------------------------

COLUMN_GAPS = {"small": "10px", "medium": "20px", "large": "30px"}


def render_columns(ctx: FieldContext) -> Markup:
    count = int(clamp_number(ctx.setting("column_count", "2"), 1, 6) or 2)
    gap = COLUMN_GAPS.get(as_text(ctx.setting("gap", "medium")), COLUMN_GAPS["medium"])
    columns = [
        tag("div", {"class": "isf-column"}, ctx.render_children([child], None, None)) for child in ctx.node.children
    ]
    return tag(
        "div",
        {
            "class": "isf-columns",
            "data-columns": str(count),
            "style": f"display: grid; grid-template-columns: repeat({count}, 1fr); gap: {gap}",
        },
        *columns,
    )


def render_section(ctx: FieldContext) -> Markup:
    title = as_text(ctx.setting("title")).strip()
    collapsible = bool(ctx.setting("collapsible"))
    collapsed = collapsible and bool(ctx.setting("collapsed_default"))
    content_id = f"{ctx.field_id}_content"
    header = None
    if title and collapsible:
        header = tag(
            "h4",
            {"class": "isf-section-title"},
            tag(
                "button",
                {
                    "type": "button",
                    "class": "isf-section-toggle",
                    "aria-expanded": "false" if collapsed else "true",
                    "aria-controls": content_id,
                },
                title,
            ),
        )
    elif title:
        header = tag("h4", {"class": "isf-section-title"}, title)
    return tag(
        "div",
        {"class": ["isf-section", "isf-collapsible" if collapsible else None, "isf-collapsed" if collapsed else None]},
        header,
        tag(
            "div",
            {"id": content_id, "class": "isf-section-content", "hidden": collapsed},
            ctx.render_children(ctx.node.children, None, None),
        ),
    )


def render_repeater(ctx: FieldContext) -> Markup:
    min_items = int(clamp_number(ctx.setting("min_items", 1), 0, 100) or 0)
    max_items = int(clamp_number(ctx.setting("max_items", 10), 0, 100) or 0)
    rows = [row for row in ctx.value if isinstance(row, Mapping)] if isinstance(ctx.value, list) else []
    if max_items and len(rows) > max_items:
        logger.warning(
            "Repeater data exceeds max_items; extra rows dropped",
            extra={"field_name": ctx.node.name, "rows": len(rows), "max_items": max_items},
        )
        rows = rows[:max_items]
    rows.extend({} for _ in range(max(0, min_items - len(rows))))
    counter = RepeaterCounter(min_items=min_items, max_items=max_items, existing=len(rows))
    remove_text = ctx.setting("remove_button_text", "Remove")

    def item(index: str, row: Mapping[str, Any] | None) -> Markup:
        return tag(
            "div",
            {"class": "isf-repeater-item", "data-index": index},
            ctx.render_children(ctx.node.children, f"{ctx.input_name}[{index}]", row),
            tag(
                "button",
                {"type": "button", "class": "isf-repeater-remove", "disabled": ctx.disabled or not counter.can_remove()},
                remove_text,
            ),
        )

    items = [item(str(index), row) for index, row in zip(counter.indices, rows)]
    return join(
        [
            tag("div", {"class": "isf-repeater-label", "id": f"{ctx.field_id}_label"}, ctx.label, _required_indicator(ctx))
            if ctx.label
            else None,
            tag(
                "div",
                {
                    "class": "isf-repeater",
                    "id": ctx.field_id,
                    "data-name": ctx.input_name,
                    "data-min": str(min_items),
                    "data-max": str(max_items),
                    "data-next-index": str(counter.next_index),
                    "aria-describedby": ctx.described_by(),
                },
                tag("div", {"class": "isf-repeater-items"}, *items),
                tag(
                    "template",
                    {"class": "isf-repeater-template", "data-placeholder": REPEATER_PLACEHOLDER},
                    item(REPEATER_PLACEHOLDER, None),
                ),
                tag(
                    "button",
                    {"type": "button", "class": "isf-repeater-add", "disabled": ctx.disabled or not counter.can_add()},
                    ctx.setting("add_button_text", "Add Item"),
                ),
            ),
            _help(ctx),
            _error_slot(ctx),
        ]
    )


DEFAULT_FIELD_RENDERERS: Mapping[str, FieldRenderFn] = {
    "text": render_text_input,
    "email": render_email,
    "phone": render_phone,
    "number": render_number,
    "textarea": render_textarea,
    "select": render_select,
    "radio": render_radio,
    "checkbox": render_checkbox,
    "toggle": render_toggle,
    "date": render_date,
    "time": render_time,
    "file": render_file,
    "signature": render_signature,
    "likert_scale": render_likert_scale,
    "slider": render_slider,
    "recaptcha_v3": render_recaptcha,
    "repeater": render_repeater,
    "star_rating": render_star_rating,
    "date_range": render_date_range,
    "address_autocomplete": render_address_autocomplete,
    "number_stepper": render_number_stepper,
    "color_picker": render_color_picker,
    "address": render_address,
    "address_street": render_address_street,
    "address_city": render_address_city,
    "address_state": render_address_state,
    "address_zip": render_address_zip,
    "account_number": render_account_number,
    "meter_number": render_text_input,
    "device_type": render_device_type,
    "program_selector": render_program_selector,
    "heading": render_heading,
    "paragraph": render_paragraph,
    "divider": render_divider,
    "spacer": render_spacer,
    "columns": render_columns,
    "section": render_section,
}


__all__ = [
    "FieldContext",
    "FieldRenderFn",
    "DEFAULT_FIELD_RENDERERS",
    "COLUMN_GAPS",
    "REPEATER_PLACEHOLDER",
]
