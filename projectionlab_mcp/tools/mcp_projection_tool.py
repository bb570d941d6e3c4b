import asyncio
import shutil
import sys
import logging
from typing import Any, Dict, Optional, Type

from langchain_core.tools import BaseTool, ToolException
from pydantic import Field, BaseModel, model_validator, PrivateAttr

from mcp.client.session import ClientSession
from mcp.client.stdio import StdioServerParameters, stdio_client
from mcp.types import (
    Implementation as MCPImplementation,
    InitializeResult,
    CallToolResult,
    TextContent,
)

from .. import __version__


# --- Custom Error ---
class McpProjectionLabToolError(ToolException):
    """Custom exception for MCP ProjectionLab tool errors."""
    pass


# --- Input Schema ---
class ProjectionLabToolInput(BaseModel):
    tool_name: str = Field(description="Name of the ProjectionLab server tool, e.g. 'list_accounts' or 'update_income'.")
    arguments: Dict[str, Any] = Field(
        default_factory=dict,
        description="Arguments for that tool using camelCase keys, e.g. {\"planId\": \"p1\", \"incomeId\": \"i1\", \"amount\": 90000}.",
    )


def format_call_result(response: CallToolResult) -> str:
    """Flatten a tool result into the text handed back to the agent."""
    texts = [item.text for item in (response.content or []) if isinstance(item, TextContent) and item.text]
    body = "\n".join(texts)
    if response.isError:
        return f"Error: {body or 'Server indicated an error.'}"
    return body or "(empty result)"


# --- Main Tool Class ---
class MCPProjectionLabTool(BaseTool, BaseModel):
    name: str = "MCPProjectionLab"
    description: str = (
        "Read and edit the user's ProjectionLab financial export through the ProjectionLab MCP server.\n\n"
        "**Input Format:**\n"
        "- `tool_name`: one of set_data_file, get_overview, list_plans, get_plan, update_person, update_spouse, "
        "list/get/add/delete for accounts, debts and assets, update_account_balance, rename_account, update_debt, "
        "update_asset, list/get/update/add/delete for income, expenses, priorities and milestones, "
        "get/update plan_variables, withdrawal_strategy and montecarlo_settings, get_progress, "
        "add_progress_snapshot, duplicate_plan, delete_plan.\n"
        "- `arguments`: the tool's fields in camelCase.\n\n"
        "**Example:**\n"
        "```json\n"
        "{\n  \"tool_name\": \"update_income\",\n  \"arguments\": {\"planId\": \"plan-1\", \"incomeId\": \"income-1\", "
        "\"end\": {\"type\": \"milestone\", \"value\": \"retirement\"}}\n}\n"
        "```\n"
        "Date references are objects {type, value, modifier?}; type is year, keyword, date or milestone."
    )
    args_schema: Type[BaseModel] = ProjectionLabToolInput
    return_direct: bool = False
    handle_tool_error: bool = True

    # Configuration for the MCP server process
    python_executable_for_server: str = Field(
        default_factory=lambda: sys.executable or shutil.which("python3") or "python"
    )
    server_module: str = "projectionlab_mcp.main"
    data_file: Optional[str] = None
    session_init_timeout: float = 30.0
    tool_call_timeout: float = 60.0

    # Internal state
    _session: Optional[ClientSession] = PrivateAttr(default=None)
    _lifecycle_task: Optional[asyncio.Task] = PrivateAttr(default=None)
    _session_ready_event: Optional[asyncio.Event] = PrivateAttr(default=None)
    _shutdown_event: Optional[asyncio.Event] = PrivateAttr(default=None)
    _init_lock: Optional[asyncio.Lock] = PrivateAttr(default=None)
    _is_closed: bool = PrivateAttr(default=False)
    _logger: Any = PrivateAttr(default=None)

    _client_info: MCPImplementation = PrivateAttr(
        default=MCPImplementation(name="MCPProjectionLabToolClient", version=__version__)
    )

    class Config:
        arbitrary_types_allowed = True

    @model_validator(mode='after')
    def _init_logger_validator(self) -> 'MCPProjectionLabTool':
        if self._logger is None:
            self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._logger.debug(f"Using server: {self.python_executable_for_server} -m {self.server_module}")
        return self

    async def _initialize_async_primitives_if_needed(self):
        if self._init_lock is None:
            self._init_lock = asyncio.Lock()
        if self._session_ready_event is None:
            self._session_ready_event = asyncio.Event()
        if self._shutdown_event is None:
            self._shutdown_event = asyncio.Event()

    def _get_server_params(self) -> StdioServerParameters:
        env = None
        if self.data_file:
            env = {"PROJECTIONLAB_DATA_FILE": self.data_file}
        return StdioServerParameters(
            command=self.python_executable_for_server,
            args=["-m", self.server_module],
            env=env,
        )

    async def _manage_session_lifecycle(self):
        self._logger.info("Starting MCP ProjectionLab session lifecycle...")
        try:
            server_params = self._get_server_params()
            async with stdio_client(server_params, errlog=sys.stderr) as (rs, ws):
                async with ClientSession(rs, ws, client_info=self._client_info) as session:
                    init_result: InitializeResult = await asyncio.wait_for(
                        session.initialize(), timeout=self.session_init_timeout
                    )
                    self._logger.info(f"MCP session initialized with server '{init_result.serverInfo.name}'.")
                    self._session = session
                    self._session_ready_event.set()
                    await self._shutdown_event.wait()
                    self._logger.info("Shutdown signal received for ProjectionLab session.")
        except asyncio.TimeoutError:
            self._logger.error(f"Timeout during ProjectionLab session initialization ({self.session_init_timeout}s).")
        except asyncio.CancelledError:
            self._logger.info("ProjectionLab session lifecycle task cancelled.")
        except Exception as e:
            self._logger.error(f"Error in ProjectionLab session lifecycle: {e}", exc_info=True)
        finally:
            self._session = None
            if self._session_ready_event and not self._session_ready_event.is_set():
                self._session_ready_event.set()

    async def _ensure_session_ready(self):
        if self._is_closed:
            raise McpProjectionLabToolError(f"{self.name} is closed.")

        await self._initialize_async_primitives_if_needed()

        if self._session and self._session_ready_event.is_set():
            return

        async with self._init_lock:
            if self._session and self._session_ready_event.is_set():
                return

            if self._lifecycle_task is None or self._lifecycle_task.done():
                self._session_ready_event.clear()
                self._shutdown_event.clear()
                self._lifecycle_task = asyncio.create_task(self._manage_session_lifecycle())

            try:
                await asyncio.wait_for(self._session_ready_event.wait(), timeout=self.session_init_timeout + 5.0)
            except asyncio.TimeoutError:
                self._logger.error("Timeout waiting for MCP ProjectionLab session to become ready.")
                if self._lifecycle_task and not self._lifecycle_task.done():
                    self._lifecycle_task.cancel()
                    try:
                        await self._lifecycle_task
                    except asyncio.CancelledError:
                        self._logger.info("ProjectionLab lifecycle task cancelled after timeout.")
                raise McpProjectionLabToolError("Timeout establishing MCP ProjectionLab session.")

            if not self._session:
                raise McpProjectionLabToolError("Failed to establish a valid MCP ProjectionLab session.")

    async def _arun(
        self,
        tool_name: str,
        arguments: Optional[Dict[str, Any]] = None,
        run_manager: Optional[Any] = None,
    ) -> str:
        """Forward one call to the ProjectionLab server and return its text."""
        if self._is_closed:
            self._logger.warning(f"Attempt to call {tool_name} on closed tool: {self.name}")
            return "Error: Tool is closed."

        try:
            await self._ensure_session_ready()

            # FastMCP tools take their fields nested under the 'input' parameter.
            arguments_for_server = {"input": arguments or {}}
            self._logger.debug(f"Calling MCP '{tool_name}' with: {arguments_for_server}")

            response: CallToolResult = await asyncio.wait_for(
                self._session.call_tool(name=tool_name, arguments=arguments_for_server),
                timeout=self.tool_call_timeout,
            )
            if response.isError:
                self._logger.warning(f"MCP '{tool_name}' returned an error result.")
            return format_call_result(response)

        except asyncio.TimeoutError:
            self._logger.error(f"Timeout calling ProjectionLab tool '{tool_name}'.")
            return f"Error: Timeout calling '{tool_name}' ({self.tool_call_timeout}s)."
        except McpProjectionLabToolError as e:
            self._logger.error(f"McpProjectionLabToolError: {e}")
            return f"Error preparing ProjectionLab session: {e}"
        except Exception as e:
            self._logger.error(f"Unexpected error calling '{tool_name}': {e}", exc_info=True)
            return f"Unexpected error during '{tool_name}': {e}"

    async def close(self):
        if self._is_closed and (self._lifecycle_task is None or self._lifecycle_task.done()):
            return

        self._logger.info(f"Closing {self.name}...")
        self._is_closed = True
        await self._initialize_async_primitives_if_needed()
        self._shutdown_event.set()

        if self._lifecycle_task and not self._lifecycle_task.done():
            try:
                await asyncio.wait_for(self._lifecycle_task, timeout=10.0)
            except asyncio.TimeoutError:
                self._logger.warning("Timeout waiting for ProjectionLab lifecycle task. Cancelling.")
                self._lifecycle_task.cancel()
                try:
                    await self._lifecycle_task
                except asyncio.CancelledError:
                    self._logger.info("ProjectionLab lifecycle task cancelled.")

        self._session_ready_event.clear()
        self._shutdown_event.clear()
        self._session = None
        self._logger.info(f"{self.name} closed.")

    def _run(self, tool_name: str, arguments: Optional[Dict[str, Any]] = None, **kwargs: Any) -> str:
        raise NotImplementedError(
            "MCPProjectionLabTool is async-native. Use _arun or implement synchronous bridging if needed."
        )
