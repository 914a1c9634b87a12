"""SonoROI CLI — Click commands for grouping, ROI editing and statistics."""
