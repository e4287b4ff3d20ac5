"""专用内容生成工具：统一契约 (definitions)、注册表 (executor) 与具体工具 (marketplace)。"""
