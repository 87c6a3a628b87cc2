"""Host implementations for samples/commands.idl"""

import asyncio

from bridgegen.runtime import Ok, Err

from commands_types import User, NotFound, PaginatedResponse, Status, ShapeCircle, ShapeSquare

LOG = []


def greet(name):
    return f"Hello, {name}!"


def add(a, b):
    return a + b


def get_user(id):
    if id > 0:
        return User(id=id, name=f"User{id}", email=f"user{id}@example.com")
    return None


def create_user(name, email):
    return User(id=1, name=name, email=email)


def validate_input(input):
    if not input:
        return Err("Input cannot be empty")
    if len(input) > 100:
        return Err("Input too long")
    return Ok(f"Valid: {input}")


def check_status(user):
    return Status.Active if user.email is not None else Status.Pending


def count_items(items):
    return len(items)


def area(shape):
    if isinstance(shape, ShapeCircle):
        return Ok(3.14159 * shape.radius ** 2)
    if isinstance(shape, ShapeSquare):
        return Ok(shape.side ** 2)
    return Err(shape)


def log_message(level, message):
    LOG.append((level, message))


def noop():
    pass


async def fetch_user(id):
    await asyncio.sleep(0)
    if id == 0:
        return Err(NotFound(id=id))
    return Ok(User(id=id, name=f"AsyncUser{id}", email=None))


async def search_users(query, limit):
    return [User(id=i, name=f"{query} Result {i}") for i in range(min(limit, 10))]


async def list_users(page, per_page):
    total = 25
    start = (page - 1) * per_page
    users = [User(id=i + 1, name=f"User{i + 1}") for i in range(start, min(start + per_page, total))]
    return PaginatedResponse[User](items=users, total=total, page=page)
