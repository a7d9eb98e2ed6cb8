"""
SurveyMark

Geometry core for annotating field-survey photos:
- config.py: Schema versions, defaults and layout metrics
- logging_utils.py: Logging setup
- annotation/: Annotation models, normalization, migration, layout and viewport math
"""
__version__ = "0.1.0"
