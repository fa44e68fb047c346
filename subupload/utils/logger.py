"""
Console output for the uploader: one colored, emoji-tagged line per event.

Upload, login and hashing steps get their own emoji so a run can be followed
at a glance. Session tokens must go through mask_token before being printed.
"""


class Logger:
    """Prints tagged lines to stdout; the level only picks the color and label."""

    # Color codes for terminal output
    RESET = "\033[0m"
    RED = "\033[91m"
    YELLOW = "\033[93m"
    GREEN = "\033[92m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"

    @staticmethod
    def info(message: str, emoji: str = "ℹ️"):
        """Progress the user should see."""
        print(f"{Logger.CYAN}INFO:    {Logger.RESET} {emoji} {message}")

    @staticmethod
    def success(message: str, emoji: str = "✅"):
        """A step finished as expected."""
        print(f"{Logger.GREEN}SUCCESS: {Logger.RESET} {emoji} {message}")

    @staticmethod
    def warning(message: str, emoji: str = "⚠️"):
        """Something odd that does not stop the run."""
        print(f"{Logger.YELLOW}WARNING: {Logger.RESET} {emoji} {message}")

    @staticmethod
    def error(message: str, emoji: str = "❌"):
        """A step failed."""
        print(f"{Logger.RED}ERROR:   {Logger.RESET} {emoji} {message}")

    @staticmethod
    def debug(message: str, emoji: str = "🔍"):
        """Details only useful when diagnosing a run."""
        print(f"{Logger.BLUE}DEBUG:   {Logger.RESET} {emoji} {message}")

    # Per-event shortcuts
    @staticmethod
    def upload(message: str):
        """Negotiation and commit steps."""
        Logger.info(message, "📤")

    @staticmethod
    def auth(message: str):
        """Login and logout."""
        Logger.info(message, "🔑")

    @staticmethod
    def file(message: str):
        """Local file handling."""
        Logger.info(message, "📄")

    @staticmethod
    def hash(message: str):
        """Log fingerprint and digest computations."""
        Logger.debug(message, "#️⃣")

    @staticmethod
    def rpc(message: str):
        """Log remote procedure calls."""
        Logger.debug(message, "🌐")


def mask_token(token: str) -> str:
    """Shorten a session token so it can be logged safely."""
    if not token:
        return ""
    if len(token) <= 8:
        return "****"
    return f"{token[:4]}...{token[-4:]}"


# Shared instance, imported as `log`
log = Logger()
