"""Document requests - intake, workflow status and cascading deletion"""
