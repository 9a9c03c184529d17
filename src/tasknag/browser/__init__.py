"""
Browser actions.

Components:
- models.py: BrowserAction, BrowserActionSettings, validation result types
- url_validator.py: URL safety checks and correction hints
- executor.py: opens action URLs with timeouts and failure isolation
"""
