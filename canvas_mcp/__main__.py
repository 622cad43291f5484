from canvas_mcp.mcp_server import main

main()
