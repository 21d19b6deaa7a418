from fchat.capabilities.base import capability


@capability("get_current_user_id")
def get_current_user_id(defaults, api, ctx):
    def get_current_user_id() -> str:
        return ctx.user_id

    return get_current_user_id
