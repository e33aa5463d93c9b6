from cuid2 import cuid_wrapper

# Create a CUID generator with default settings
cuid_generator = cuid_wrapper()


def generate_cuid() -> str:
    """Generate a collision-resistant unique identifier for new rows"""
    result = cuid_generator()
    if not isinstance(result, str):
        raise TypeError(f"cuid generator returned {type(result).__name__}, expected str")
    return result
