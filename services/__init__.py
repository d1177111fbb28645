"""
Services: pipeline orchestration, delivery and segmentation
"""
