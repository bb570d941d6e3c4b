from .mcp_projection_tool import MCPProjectionLabTool, McpProjectionLabToolError, ProjectionLabToolInput

__all__ = ["MCPProjectionLabTool", "McpProjectionLabToolError", "ProjectionLabToolInput"]
