"""Infrastructure modules for the member group processor.

- operations: Operation results and error classification
"""
