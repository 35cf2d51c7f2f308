"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = ["upload", "list", "download", "delete", "stats", "info", "connect", "clear", "exit", "help"]

STYLE = Style.from_dict(
    {
        "prompt": "#2E9CCA bold",
        "command": "#0088ff bold",
    }
)

ACCENT = "\033[38;2;46;156;202m"
GREEN = "\033[38;2;80;200;120m"
RESET = "\033[0m"

LOGO = f"""{ACCENT}
 ██╗      █████╗ ███╗   ██╗    ██████╗ ██████╗  ██████╗ ██████╗
 ██║     ██╔══██╗████╗  ██║    ██╔══██╗██╔══██╗██╔═══██╗██╔══██╗
 ██║     ███████║██╔██╗ ██║    ██║  ██║██████╔╝██║   ██║██████╔╝
 ██║     ██╔══██║██║╚██╗██║    ██║  ██║██╔══██╗██║   ██║██╔═══╝
 ███████╗██║  ██║██║ ╚████║    ██████╔╝██║  ██║╚██████╔╝██║
 ╚══════╝╚═╝  ╚═╝╚═╝  ╚═══╝    ╚═════╝ ╚═╝  ╚═╝ ╚═════╝ ╚═╝
{RESET}"""

WELCOME_TITLE = "LAN Drop CLI - send files to a computer on your network"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "landrop> "

HELP_TEXT = """Available commands:
  upload <file> [file ...]               Upload one or more local files (up to 10 per batch)
  list [date] [--limit N]                List received files, newest first (date is YYYY-MM-DD)
  download <date> <stored-name> [output] Download a file (saved under its original name by default)
  delete <date> <stored-name>            Delete a stored file
  stats                                  Show file count, total size and free disk space
  info                                   Show receiver name, version and size limit
  connect <host> [port]                  Point the CLI at another receiver
  clear                                  Clear screen and redisplay welcome message
  help                                   Show this help
  exit                                   Exit REPL

Stored names look like 1704067200000_a1b2c3d4_report.pdf; 'list' shows them.
Examples:
  connect 192.168.1.20 3000
  upload photo.jpg notes.txt
  list 2024-01-01 --limit 10
  download 2024-01-01 1704067200000_a1b2c3d4_report.pdf
  delete 2024-01-01 1704067200000_a1b2c3d4_report.pdf"""

CONFIG_DIR = ".landrop"
CONFIG_FILE = "config.json"
DOWNLOAD_PIECE_SIZE = 8192
