"""
certpath: content and progression engine for certification training.

Exams contain modules, modules contain sub-topics and content points, each
backed by a bank of multiple-choice questions. Learners unlock content by
passing exam-mode quizzes; admins curate content and import/export question
banks.
"""

__version__ = "1.0.0"
