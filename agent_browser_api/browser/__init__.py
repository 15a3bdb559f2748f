"""
Everything that touches the agent-browser executable.

- executor.py: CommandRunner, argv execution with timeout and output cap
- agent_browser.py: AgentBrowser, one method per subcommand
- session.py: session ids and guaranteed close
- retry.py: with_retry, exponential backoff
"""

from .agent_browser import AgentBrowser
from .executor import CommandRunner
from .retry import with_retry
from .session import browser_session, generate_session_id, with_session

__all__ = [
    "AgentBrowser",
    "CommandRunner",
    "browser_session",
    "generate_session_id",
    "with_retry",
    "with_session",
]
