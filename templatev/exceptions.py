"""
Custom exception hierarchy for templatev.

Template syntax errors are not part of this hierarchy: they surface as
``jinja2.TemplateSyntaxError`` straight from the parser.
"""
from typing import List, Optional


class TemplateVError(Exception):
    """Base exception for all templatev errors."""
    
    def __init__(self, message: str, suggestion: Optional[str] = None):
        self.message = message
        self.suggestion = suggestion
        super().__init__(self.format_message())
    
    def format_message(self) -> str:
        """Format the error message with suggestion if available."""
        if self.suggestion:
            return f"{self.message}\n💡 Suggestion: {self.suggestion}"
        return self.message


class TemplateNotFoundError(TemplateVError):
    """Template source does not exist."""
    
    def __init__(self, path: str):
        message = f"Template '{path}' not found"
        suggestion = "Check the path and make sure it points to a readable file"
        super().__init__(message, suggestion)
        self.path = str(path)


class VariableMissingError(TemplateVError):
    """Required variables are not bound."""
    
    def __init__(self, missing_variables: List[str]):
        # Names are reported once each, in first-appearance order
        unique = list(dict.fromkeys(missing_variables))
        message = f"Missing required variables: {', '.join(unique)}"
        suggestion = "Provide variables using --var, --vars-file or --env"
        super().__init__(message, suggestion)
        self.missing_variables = list(missing_variables)


class BindingsFileError(TemplateVError):
    """Variables file could not be loaded."""
    
    def __init__(self, path: str, details: str):
        message = f"Invalid variables file '{path}': {details}"
        suggestion = "Variables files must contain a YAML mapping of names to values"
        super().__init__(message, suggestion)
        self.path = str(path)
        self.details = details


class ConfigManagerError(TemplateVError):
    """Configuration file could not be read or written."""
