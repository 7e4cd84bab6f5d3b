"""Template tokenizer, resolvers and the fixed-point engine."""
