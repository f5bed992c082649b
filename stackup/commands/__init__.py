"""stackup CLI commands"""
