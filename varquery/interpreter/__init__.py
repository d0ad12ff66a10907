"""Filters that apply a case query to sequence variants."""