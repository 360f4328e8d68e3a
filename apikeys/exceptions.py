class InvalidCredential(Exception):
    """Clé API inconnue ou désactivée."""

    code = "InvalidCredential"

    def __init__(self, message: str = "Invalid or Inactive API Key"):
        super().__init__(message)
        self.message = message
