def mapping_transactions():
    props = {
        "userId": {"type": "keyword"},
        "amount": {"type": "scaled_float", "scaling_factor": 100},
        "description": {"type": "text", "fields": {"raw": {"type": "keyword", "ignore_above": 256}}},
        "category": {"type": "keyword"},
        "source": {"type": "keyword"},
        "date": {"type": "date"},
        "createdAt": {"type": "date"},
    }
    return {"mappings": {"properties": props}}
