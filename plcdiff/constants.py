"""Tag tables and formatting constants shared by the textconv stages."""

import re

# GUIDs used for cross references inside project files,
# e.g. "8bff0fc0-0ad4-40a4-a4c7-c6a5c1df96b7"
GUID_PATTERN = re.compile(
    r'(?<![0-9A-Fa-f-])'
    r'[0-9A-Fa-f]{8}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{12}'
    r'(?![0-9A-Fa-f-])'
)
IDENTIFIER_LABEL_FORMAT = "=={}=="

# Diff tool hunk header convention
MARKER_PREFIX = "### "
HUNK_HEADER_PATTERN = r"^### (.*)$"
CONTEXT_SEPARATOR = " > "

INDENT = "    "
SYMBOL_COLUMN = 13

# Program units: tag -> unit kind
UNIT_RUNGS = "rungs"
UNIT_CHART = "chart"
UNIT_STRUCTURED_TEXT = "structured_text"

UNIT_TAGS = {
    'ProgramOrganizationUnits': UNIT_RUNGS,
    'Grafcet': UNIT_CHART,
    'Pou': UNIT_STRUCTURED_TEXT,
    'Program': UNIT_STRUCTURED_TEXT,
    'FunctionBlock': UNIT_STRUCTURED_TEXT,
    'Function': UNIT_STRUCTURED_TEXT,
    'UserFunction': UNIT_STRUCTURED_TEXT,
    'UserFunctionBlock': UNIT_STRUCTURED_TEXT,
    'Action': UNIT_STRUCTURED_TEXT,
    'Method': UNIT_STRUCTURED_TEXT,
}

# Attributes holding an encoded structured text body, in lookup order
CODE_ATTRIBUTES = ('Code', 'Source', 'Body', 'Text')

# Rung layout
RUNG_TAG = 'RungEntity'
INSTRUCTION_LINES_TAG = 'InstructionLines'
INSTRUCTION_ENTITY_TAG = 'InstructionLineEntity'
RUNG_HANDLED_CHILDREN = {'Name', 'MainComment', 'Label', INSTRUCTION_LINES_TAG}

# Grafcet (SFC) nodes: tag -> printed kind
GRAFCET_NODE_TAGS = {
    'GrafcetNodeStep': 'STEP',
    'GrafcetTransition': 'TRANSITION',
    'GrafcetOrFork': 'OR-FORK',
    'GrafcetOrJunction': 'OR-JUNCTION',
}
GRAFCET_LINK_TAGS = {'Id', 'From', 'To'}

# IO symbol table
ADDRESS_TAG = 'Address'
SYMBOL_TAG = 'Symbol'

# Section classification
DIAGRAM_TAGS = {
    'LadderElements',
    'LadderEntity',
}
LOGIC_TAGS = (
    set(UNIT_TAGS)
    | set(GRAFCET_NODE_TAGS)
    | {RUNG_TAG, INSTRUCTION_LINES_TAG, INSTRUCTION_ENTITY_TAG}
)
LANGUAGE_ATTRIBUTE = 'language'
DIAGRAM_LANGUAGES = {'LD', 'LAD', 'LADDER', 'FBD', 'CFC'}
LOGIC_LANGUAGES = {'ST', 'IL', 'SFC', 'GRAFCET'}
