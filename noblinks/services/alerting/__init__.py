"""
Alert assistant and alert management.
"""
