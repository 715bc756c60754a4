"""
Exception classes for LiveText Python SDK
"""

from typing import Optional, Dict, Any


class LiveTextSDKError(Exception):
    """Base exception for all LiveText SDK errors"""
    
    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.error_code = error_code
        self.details = details or {}


class ValidationError(LiveTextSDKError):
    """Exception raised for validation failures"""
    pass


class ConfigurationError(LiveTextSDKError):
    """Exception raised when settings cannot be loaded or are incomplete"""
    pass


class ServerCommunicationError(LiveTextSDKError):
    """Exception raised for server communication errors"""
    
    def __init__(self, message: str, error_code: str = "SERVER_ERROR", 
                 http_status: int = 0, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)
        self.http_status = http_status


class AuthenticationError(ServerCommunicationError):
    """
    Exception raised when the provider rejects the request signature.
    
    The signer is deterministic, so resending the same request cannot succeed;
    the credentials have to be checked and the call repeated by the user.
    """
    
    def __init__(self, message: str, http_status: int = 401,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "AUTHENTICATION_FAILED", http_status, details)
