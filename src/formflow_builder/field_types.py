from __future__ import annotations

from typing import Any, Mapping

from .models.context import ProgramOption
from .models.field_type import FieldCategory, FieldTypeDefinition, SettingDefinition, SettingKind

CATEGORY_LABELS: Mapping[FieldCategory, str] = {
    FieldCategory.basic: "Basic Fields",
    FieldCategory.selection: "Selection Fields",
    FieldCategory.advanced: "Advanced Fields",
    FieldCategory.address: "Address Fields",
    FieldCategory.utility: "Utility Fields",
    FieldCategory.layout: "Layout Elements",
}

# Types that never carry a submitted value and may be left unnamed.
LAYOUT_TYPES = frozenset({"heading", "paragraph", "divider", "spacer", "columns", "section"})

# Types that count toward the container nesting ceiling.
NESTING_CONTAINER_TYPES = frozenset({"columns", "section"})


def _text(label: str, default: str = "") -> SettingDefinition:
    return SettingDefinition(kind=SettingKind.text, label=label, default=default)


def _textarea(label: str, default: str = "") -> SettingDefinition:
    return SettingDefinition(kind=SettingKind.textarea, label=label, default=default)


def _number(label: str, default: Any = "") -> SettingDefinition:
    return SettingDefinition(kind=SettingKind.number, label=label, default=default)


def _checkbox(label: str, default: bool = False) -> SettingDefinition:
    return SettingDefinition(kind=SettingKind.checkbox, label=label, default=default)


def _select(label: str, default: str, options: Mapping[str, str]) -> SettingDefinition:
    return SettingDefinition(kind=SettingKind.select, label=label, default=default, options=options)


def _options(label: str = "Options") -> SettingDefinition:
    return SettingDefinition(kind=SettingKind.options, label=label, default=[])


def _required(default: bool = False) -> SettingDefinition:
    return _checkbox("Required", default)


_SIZES = {"small": "Small", "medium": "Medium", "large": "Large"}

_BUILTIN_TYPES = (
    # Basic
    FieldTypeDefinition(
        type_id="text",
        label="Text Input",
        icon="dashicons-editor-textcolor",
        category=FieldCategory.basic,
        settings={
            "label": _text("Label"),
            "placeholder": _text("Placeholder"),
            "required": _required(),
            "help_text": _textarea("Help Text"),
            "max_length": _number("Max Length"),
            "pattern": _text("Validation Pattern (regex)"),
        },
    ),
    FieldTypeDefinition(
        type_id="email",
        label="Email",
        icon="dashicons-email",
        category=FieldCategory.basic,
        settings={
            "label": _text("Label", "Email Address"),
            "placeholder": _text("Placeholder", "email@example.com"),
            "required": _required(True),
            "confirm": _checkbox("Require Confirmation"),
        },
    ),
    FieldTypeDefinition(
        type_id="phone",
        label="Phone Number",
        icon="dashicons-phone",
        category=FieldCategory.basic,
        settings={
            "label": _text("Label", "Phone Number"),
            "placeholder": _text("Placeholder", "(555) 555-5555"),
            "required": _required(),
            "format": _select("Format", "us", {"us": "US Format", "international": "International"}),
        },
    ),
    FieldTypeDefinition(
        type_id="number",
        label="Number",
        icon="dashicons-calculator",
        category=FieldCategory.basic,
        settings={
            "label": _text("Label"),
            "placeholder": _text("Placeholder"),
            "required": _required(),
            "min": _number("Minimum Value"),
            "max": _number("Maximum Value"),
            "step": _number("Step", "1"),
        },
    ),
    FieldTypeDefinition(
        type_id="textarea",
        label="Text Area",
        icon="dashicons-editor-paragraph",
        category=FieldCategory.basic,
        settings={
            "label": _text("Label"),
            "placeholder": _text("Placeholder"),
            "required": _required(),
            "rows": _number("Rows", 4),
            "max_length": _number("Max Length"),
        },
    ),
    # Selection
    FieldTypeDefinition(
        type_id="select",
        label="Dropdown",
        icon="dashicons-arrow-down-alt2",
        category=FieldCategory.selection,
        settings={
            "label": _text("Label"),
            "required": _required(),
            "options": _options(),
            "placeholder": _text("Placeholder", "Select an option"),
            "searchable": _checkbox("Searchable"),
        },
    ),
    FieldTypeDefinition(
        type_id="radio",
        label="Radio Buttons",
        icon="dashicons-marker",
        category=FieldCategory.selection,
        settings={
            "label": _text("Label"),
            "required": _required(),
            "options": _options(),
            "layout": _select("Layout", "vertical", {"vertical": "Vertical", "horizontal": "Horizontal"}),
        },
    ),
    FieldTypeDefinition(
        type_id="checkbox",
        label="Checkboxes",
        icon="dashicons-yes",
        category=FieldCategory.selection,
        settings={
            "label": _text("Label"),
            "required": _required(),
            "options": _options(),
            "min_select": _number("Minimum Selections"),
            "max_select": _number("Maximum Selections"),
        },
    ),
    FieldTypeDefinition(
        type_id="toggle",
        label="Toggle Switch",
        icon="dashicons-controls-repeat",
        category=FieldCategory.selection,
        settings={
            "label": _text("Label"),
            "default_value": _checkbox("Default On"),
            "on_label": _text("On Label", "Yes"),
            "off_label": _text("Off Label", "No"),
        },
    ),
    # Advanced
    FieldTypeDefinition(
        type_id="date",
        label="Date Picker",
        icon="dashicons-calendar-alt",
        category=FieldCategory.advanced,
        settings={
            "label": _text("Label"),
            "required": _required(),
            "min_date": _text('Min Date (YYYY-MM-DD or "today")'),
            "max_date": _text("Max Date"),
            "disable_weekends": _checkbox("Disable Weekends"),
        },
    ),
    FieldTypeDefinition(
        type_id="time",
        label="Time Picker",
        icon="dashicons-clock",
        category=FieldCategory.advanced,
        settings={
            "label": _text("Label"),
            "required": _required(),
            "min_time": _text("Min Time (HH:MM)"),
            "max_time": _text("Max Time"),
            "interval": _select("Time Interval", "30", {"15": "15 minutes", "30": "30 minutes", "60": "1 hour"}),
        },
    ),
    FieldTypeDefinition(
        type_id="file",
        label="File Upload",
        icon="dashicons-upload",
        category=FieldCategory.advanced,
        settings={
            "label": _text("Label"),
            "required": _required(),
            "allowed_types": _text("Allowed File Types", "jpg,jpeg,png,pdf"),
            "max_size": _number("Max File Size (MB)", 5),
            "multiple": _checkbox("Allow Multiple Files"),
        },
    ),
    FieldTypeDefinition(
        type_id="signature",
        label="Signature",
        icon="dashicons-admin-customizer",
        category=FieldCategory.advanced,
        settings={
            "label": _text("Label", "Signature"),
            "required": _required(True),
            "width": _number("Width (px)", 400),
            "height": _number("Height (px)", 150),
        },
    ),
    FieldTypeDefinition(
        type_id="likert_scale",
        label="Likert Scale",
        icon="dashicons-star-filled",
        category=FieldCategory.advanced,
        settings={
            "label": _text("Label", "Rate your satisfaction"),
            "required": _required(),
            "scale_type": _select(
                "Scale Type",
                "5",
                {"3": "3-point scale", "5": "5-point scale", "7": "7-point scale", "10": "10-point scale"},
            ),
            "labels": _text("Custom Labels (comma-separated)"),
            "show_labels": _checkbox("Show Labels", True),
        },
    ),
    FieldTypeDefinition(
        type_id="slider",
        label="Slider",
        icon="dashicons-leftright",
        category=FieldCategory.advanced,
        settings={
            "label": _text("Label"),
            "required": _required(),
            "min": _number("Minimum Value", 0),
            "max": _number("Maximum Value", 100),
            "step": _number("Step", 1),
            "default_value": _number("Default Value", 50),
            "show_value": _checkbox("Show Current Value", True),
            "prefix": _text("Value Prefix"),
            "suffix": _text("Value Suffix"),
        },
    ),
    FieldTypeDefinition(
        type_id="recaptcha_v3",
        label="reCAPTCHA v3",
        icon="dashicons-shield",
        category=FieldCategory.advanced,
        settings={
            "site_key": _text("Site Key"),
            "secret_key": _text("Secret Key"),
            "threshold": _number("Score Threshold (0.0-1.0)", 0.5),
            "action": _text("Action Name", "submit"),
        },
    ),
    FieldTypeDefinition(
        type_id="repeater",
        label="Repeater",
        icon="dashicons-plus-alt",
        category=FieldCategory.advanced,
        is_container=True,
        settings={
            "label": _text("Label", "Add Item"),
            "min_items": _number("Minimum Items", 1),
            "max_items": _number("Maximum Items", 10),
            "add_button_text": _text("Add Button Text", "Add Item"),
            "remove_button_text": _text("Remove Button Text", "Remove"),
        },
    ),
    FieldTypeDefinition(
        type_id="star_rating",
        label="Star Rating",
        icon="dashicons-star-filled",
        category=FieldCategory.advanced,
        settings={
            "label": _text("Label", "Rate this"),
            "required": _required(),
            "max_stars": _select("Number of Stars", "5", {"3": "3", "5": "5", "7": "7", "10": "10"}),
            "star_size": _select("Star Size", "medium", _SIZES),
            "show_labels": _checkbox("Show Rating Labels"),
        },
    ),
    FieldTypeDefinition(
        type_id="date_range",
        label="Date Range Picker",
        icon="dashicons-calendar-alt",
        category=FieldCategory.advanced,
        settings={
            "label": _text("Label", "Select Date Range"),
            "required": _required(),
            "min_date": _text('Min Date (YYYY-MM-DD or "today")'),
            "max_date": _text("Max Date"),
            "preset_ranges": _checkbox("Show Preset Ranges", True),
        },
    ),
    FieldTypeDefinition(
        type_id="address_autocomplete",
        label="Address Autocomplete",
        icon="dashicons-location-alt",
        category=FieldCategory.advanced,
        settings={
            "label": _text("Label", "Address"),
            "required": _required(True),
            "placeholder": _text("Placeholder", "Start typing an address..."),
            "api_key": _text("Google Places API Key"),
            "countries": _text("Restrict to Countries (comma-separated)", "us"),
            "help_text": _textarea(
                "Help Text", "Google Places API integration. Configure API key in settings."
            ),
        },
    ),
    FieldTypeDefinition(
        type_id="number_stepper",
        label="Number Stepper",
        icon="dashicons-plus-alt2",
        category=FieldCategory.advanced,
        settings={
            "label": _text("Label", "Quantity"),
            "required": _required(),
            "min": _number("Minimum Value", 0),
            "max": _number("Maximum Value", 100),
            "step": _number("Step", 1),
            "default_value": _number("Default Value", 1),
            "size": _select("Size", "medium", _SIZES),
        },
    ),
    FieldTypeDefinition(
        type_id="color_picker",
        label="Color Picker",
        icon="dashicons-art",
        category=FieldCategory.advanced,
        settings={
            "label": _text("Label", "Select Color"),
            "required": _required(),
            "default_color": _text("Default Color", "#000000"),
            "preset_colors": _text(
                "Preset Colors (comma-separated hex)", "#FF0000,#00FF00,#0000FF,#FFFF00,#FF00FF,#00FFFF"
            ),
            "show_alpha": _checkbox("Enable Opacity/Alpha"),
        },
    ),
    # Address
    FieldTypeDefinition(
        type_id="address",
        label="Address (Smart)",
        icon="dashicons-location",
        category=FieldCategory.address,
        settings={
            "label": _text("Label", "Service Address"),
            "required": _required(True),
            "autocomplete": _checkbox("Enable Autocomplete", True),
            "validate_territory": _checkbox("Validate Service Territory", True),
            "include_unit": _checkbox("Include Unit/Apt Field", True),
        },
    ),
    FieldTypeDefinition(
        type_id="address_street",
        label="Street Address",
        icon="dashicons-location",
        category=FieldCategory.address,
        settings={
            "label": _text("Label", "Street Address"),
            "required": _required(True),
            "autocomplete": _checkbox("Enable Autocomplete", True),
        },
    ),
    FieldTypeDefinition(
        type_id="address_city",
        label="City",
        icon="dashicons-location",
        category=FieldCategory.address,
        settings={"label": _text("Label", "City"), "required": _required(True)},
    ),
    FieldTypeDefinition(
        type_id="address_state",
        label="State",
        icon="dashicons-location",
        category=FieldCategory.address,
        settings={
            "label": _text("Label", "State"),
            "required": _required(True),
            "country": _select("Country", "US", {"US": "United States", "CA": "Canada"}),
        },
    ),
    FieldTypeDefinition(
        type_id="address_zip",
        label="ZIP Code",
        icon="dashicons-location",
        category=FieldCategory.address,
        settings={
            "label": _text("Label", "ZIP Code"),
            "required": _required(True),
            "validate_format": _checkbox("Validate Format", True),
        },
    ),
    # Utility
    FieldTypeDefinition(
        type_id="account_number",
        label="Account Number",
        icon="dashicons-id",
        category=FieldCategory.utility,
        settings={
            "label": _text("Label", "Account Number"),
            "required": _required(True),
            "help_text": _textarea("Help Text", "Find this on your utility bill"),
            "validate_api": _checkbox("Validate via API", True),
            "mask": _text("Input Mask"),
        },
    ),
    FieldTypeDefinition(
        type_id="meter_number",
        label="Meter Number",
        icon="dashicons-dashboard",
        category=FieldCategory.utility,
        settings={"label": _text("Label", "Meter Number"), "required": _required()},
    ),
    FieldTypeDefinition(
        type_id="device_type",
        label="Device Type Selector",
        icon="dashicons-laptop",
        category=FieldCategory.utility,
        settings={
            "label": _text("Label", "Select Your Device"),
            "required": _required(True),
            "device_options": _select(
                "Device Category",
                "thermostat",
                {
                    "thermostat": "Smart Thermostats",
                    "water_heater": "Water Heaters",
                    "ev_charger": "EV Chargers",
                    "pool_pump": "Pool Pumps",
                    "custom": "Custom List",
                },
            ),
            "options": _options("Custom Devices"),
        },
    ),
    FieldTypeDefinition(
        type_id="program_selector",
        label="Program Selector",
        icon="dashicons-clipboard",
        category=FieldCategory.utility,
        settings={
            "label": _text("Label", "Select Programs"),
            "required": _required(True),
            "allow_multiple": _checkbox("Allow Multiple Selections", True),
            "show_descriptions": _checkbox("Show Program Descriptions", True),
            "show_incentives": _checkbox("Show Incentive Amounts", True),
        },
    ),
    # Layout
    FieldTypeDefinition(
        type_id="heading",
        label="Heading",
        icon="dashicons-heading",
        category=FieldCategory.layout,
        settings={
            "text": _text("Heading Text"),
            "level": _select("Heading Level", "h3", {"h2": "H2", "h3": "H3", "h4": "H4"}),
            "alignment": _select("Alignment", "left", {"left": "Left", "center": "Center", "right": "Right"}),
        },
    ),
    FieldTypeDefinition(
        type_id="paragraph",
        label="Paragraph",
        icon="dashicons-editor-paragraph",
        category=FieldCategory.layout,
        settings={"content": SettingDefinition(kind=SettingKind.wysiwyg, label="Content", default="")},
    ),
    FieldTypeDefinition(
        type_id="divider",
        label="Divider",
        icon="dashicons-minus",
        category=FieldCategory.layout,
        settings={
            "style": _select("Style", "solid", {"solid": "Solid", "dashed": "Dashed", "dotted": "Dotted"}),
            "spacing": _select("Spacing", "medium", _SIZES),
        },
    ),
    FieldTypeDefinition(
        type_id="spacer",
        label="Spacer",
        icon="dashicons-image-flip-vertical",
        category=FieldCategory.layout,
        settings={"height": _number("Height (px)", 20)},
    ),
    FieldTypeDefinition(
        type_id="columns",
        label="Columns",
        icon="dashicons-columns",
        category=FieldCategory.layout,
        is_container=True,
        settings={
            "column_count": _select("Columns", "2", {"2": "2 Columns", "3": "3 Columns", "4": "4 Columns"}),
            "gap": _select("Gap", "medium", _SIZES),
        },
    ),
    FieldTypeDefinition(
        type_id="section",
        label="Section",
        icon="dashicons-editor-table",
        category=FieldCategory.layout,
        is_container=True,
        settings={
            "title": _text("Section Title"),
            "collapsible": _checkbox("Collapsible"),
            "collapsed_default": _checkbox("Collapsed by Default"),
        },
    ),
)

DEFAULT_FIELD_TYPES: Mapping[str, FieldTypeDefinition] = {
    definition.type_id: definition for definition in _BUILTIN_TYPES
}

DEFAULT_PROGRAMS: tuple[ProgramOption, ...] = (
    ProgramOption(
        id="smart_thermostat",
        name="Smart Thermostat Program",
        description="Earn rewards by allowing brief AC adjustments during peak demand.",
        incentive="$75 annual credit",
        icon="dashicons-superhero",
    ),
    ProgramOption(
        id="peak_time_rebates",
        name="Peak Time Rebates",
        description="Reduce energy during peak events and earn bill credits.",
        incentive="Up to $2/kWh saved",
        icon="dashicons-clock",
    ),
    ProgramOption(
        id="ev_charging",
        name="EV Managed Charging",
        description="Optimize your EV charging to save money and support the grid.",
        incentive="$50 monthly credit",
        icon="dashicons-car",
    ),
)

DEVICE_CATALOG: Mapping[str, Mapping[str, str]] = {
    "thermostat": {
        "nest": "Google Nest",
        "ecobee": "ecobee",
        "honeywell": "Honeywell Home",
        "emerson": "Emerson Sensi",
        "other": "Other Thermostat",
    },
    "water_heater": {
        "electric_tank": "Electric Tank",
        "heat_pump": "Heat Pump Water Heater",
        "other": "Other Water Heater",
    },
    "ev_charger": {
        "level_1": "Level 1 (120V)",
        "level_2": "Level 2 (240V)",
        "other": "Other Charger",
    },
    "pool_pump": {
        "single_speed": "Single-Speed Pump",
        "variable_speed": "Variable-Speed Pump",
    },
}

REGIONS: Mapping[str, Mapping[str, str]] = {
    "US": {
        "AL": "Alabama", "AK": "Alaska", "AZ": "Arizona", "AR": "Arkansas", "CA": "California",
        "CO": "Colorado", "CT": "Connecticut", "DE": "Delaware", "DC": "District of Columbia",
        "FL": "Florida", "GA": "Georgia", "HI": "Hawaii", "ID": "Idaho", "IL": "Illinois",
        "IN": "Indiana", "IA": "Iowa", "KS": "Kansas", "KY": "Kentucky", "LA": "Louisiana",
        "ME": "Maine", "MD": "Maryland", "MA": "Massachusetts", "MI": "Michigan", "MN": "Minnesota",
        "MS": "Mississippi", "MO": "Missouri", "MT": "Montana", "NE": "Nebraska", "NV": "Nevada",
        "NH": "New Hampshire", "NJ": "New Jersey", "NM": "New Mexico", "NY": "New York",
        "NC": "North Carolina", "ND": "North Dakota", "OH": "Ohio", "OK": "Oklahoma", "OR": "Oregon",
        "PA": "Pennsylvania", "RI": "Rhode Island", "SC": "South Carolina", "SD": "South Dakota",
        "TN": "Tennessee", "TX": "Texas", "UT": "Utah", "VT": "Vermont", "VA": "Virginia",
        "WA": "Washington", "WV": "West Virginia", "WI": "Wisconsin", "WY": "Wyoming",
    },
    "CA": {
        "AB": "Alberta", "BC": "British Columbia", "MB": "Manitoba", "NB": "New Brunswick",
        "NL": "Newfoundland and Labrador", "NS": "Nova Scotia", "NT": "Northwest Territories",
        "NU": "Nunavut", "ON": "Ontario", "PE": "Prince Edward Island", "QC": "Quebec",
        "SK": "Saskatchewan", "YT": "Yukon",
    },
}


__all__ = [
    "CATEGORY_LABELS",
    "DEFAULT_FIELD_TYPES",
    "DEFAULT_PROGRAMS",
    "DEVICE_CATALOG",
    "LAYOUT_TYPES",
    "NESTING_CONTAINER_TYPES",
    "REGIONS",
]
