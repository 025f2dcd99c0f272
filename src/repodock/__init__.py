"""
Provision local clones of GitHub repositories as managed projects.
"""
