"""SonoROI — ultrasound time-series grouping, ROI tracking and intensity statistics."""
