"""
statecore basics: nested state, aliases, paths and validation.
"""

from statecore import LambdaMapper, SimpleMapperFactory, State, register_global_mapper

register_global_mapper(
    SimpleMapperFactory("upper", lambda args: LambdaMapper(lambda v: str(v).upper()))
)

schema = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "age": {"type": "integer", "minimum": 0},
        "role": {"type": "string", "default": "guest"},
    },
}

app = State(
    {
        "user": {
            "name": "Ada",
            "age": 36,
            "address": {"city": "London"},
        },
        "shout": "{user.name |> upper()}",
        "greeting": lambda s: f"Hello, {s.user.name} from {s.user.address.city}",
        "todos": [],
        "done_count": lambda s: sum(1 for t in s.todos if t.done),
    }
)

print(app.greeting)
print(app.shout)

# Path subscriptions follow structural replacement
app.on("user.address.city", lambda city: print(f"city -> {city}"), immediate=False)
app.user.address.city = "Paris"
app.user = {"name": "Alan", "age": 41, "address": {"city": "Manchester"}}

# Lists wrap dicts into child States
app.todos.push({"title": "write docs", "done": False})
app.todos.push({"title": "ship", "done": False})
app.todos.at(0).done = True
print(f"done: {app.done_count}")

# Validation reports problems without blocking the write
profile = State({"name": "Grace", "age": 30}, schema=schema)
print(profile.role)
profile.on_validation_change(lambda evt: print(f"valid={evt.valid}"))
profile.age = -1
print(profile.schema_errors("age"))
profile.age = 31

# Children inherit keys their parent declares
settings = State({"theme": "light"})
panel = State({"title": "Inbox"}, parent=settings)
panel.theme = "dark"
print(settings.theme)
