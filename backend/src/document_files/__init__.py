"""Document files - upload, replacement, deletion and lookup of request attachments"""
