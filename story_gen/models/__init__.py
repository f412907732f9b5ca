"""
Module: story_gen.models
Purpose: Text-generation engine implementations

Import from story_gen.models.text_generation directly; it pulls in torch and
transformers, so nothing is re-exported here.
"""
