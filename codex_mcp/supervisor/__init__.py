"""Agent supervision — codex CLI agents run as tracked OS subprocesses.

This package provides:
- OutputBuffer: capped capture of one stdout/stderr stream
- AgentRecord, AgentRegistry: per-agent state and the table holding it
- AgentSupervisor: spawn, query, wait, stop, shutdown and availability probe
"""
