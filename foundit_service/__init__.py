"""FoundIt - campus lost & found service"""
