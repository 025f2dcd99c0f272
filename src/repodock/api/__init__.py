"""
HTTP facade for provisioning and GitHub organization listings.
"""
