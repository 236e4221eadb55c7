# ABOUTME: Entry point for loading the addon into an interactive mitmproxy
# ABOUTME: Usage: mitmproxy -s src/repeater_history_mcp/script.py

from repeater_history_mcp.addon import RepeaterHistoryAddon
from repeater_history_mcp.storage import TabHistoryStore

# One history per mitmproxy session
addons = [RepeaterHistoryAddon(TabHistoryStore())]
