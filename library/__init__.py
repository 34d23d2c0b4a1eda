"""
Library catalog domain: entities, persistence and repository.
"""
