"""Job orchestration: status lifecycle, pipeline and variant retention."""
