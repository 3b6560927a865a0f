class ProfileMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        user = getattr(request, "user", None)
        if user and user.is_authenticated:
            request.platform_profile = getattr(user, "platforms", None)
        else:
            request.platform_profile = None
        return self.get_response(request)
