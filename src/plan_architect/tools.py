# tools.py
# Default tool catalog, descriptors only.
# The architect plans against these names; an external executor runs them.

from plan_architect.models import ParamSpec, ToolDescriptor

LIST_FILES = ToolDescriptor(
    name="list_files",
    description="List files and folders under a workspace path.",
    parameters=(
        ParamSpec(name="path", type="string", description="Directory relative to the workspace root.", required=False),
    ),
)

READ_FILE = ToolDescriptor(
    name="read_file",
    description="Read the contents of a text file.",
    parameters=(
        ParamSpec(name="path", type="string", description="File path relative to the workspace root.", required=True),
    ),
)

WRITE_FILE = ToolDescriptor(
    name="write_file",
    description="Create or overwrite a text file.",
    parameters=(
        ParamSpec(name="path", type="string", description="File path relative to the workspace root.", required=True),
        ParamSpec(name="content", type="string", description="Full file content.", required=True),
    ),
)

SEARCH_WEB = ToolDescriptor(
    name="search_web",
    description="Search the web and return the top results.",
    parameters=(
        ParamSpec(name="query", type="string", description="Search query.", required=True),
    ),
)

REQUEST_USER_INPUT = ToolDescriptor(
    name="request_user_input",
    description="Ask the user a question and wait for the answer.",
    parameters=(
        ParamSpec(name="question", type="string", description="Question shown to the user.", required=True),
    ),
)

SUBMIT_RESPONSE = ToolDescriptor(
    name="submit_response",
    description="Send the final answer to the user. Must be the last task of every plan.",
    parameters=(
        ParamSpec(name="response", type="string", description="Markdown answer for the user.", required=True),
    ),
)

DEFAULT_TOOLS: tuple[ToolDescriptor, ...] = (
    LIST_FILES,
    READ_FILE,
    WRITE_FILE,
    SEARCH_WEB,
    REQUEST_USER_INPUT,
    SUBMIT_RESPONSE,
)
