"""意图识别：JSON 提取 (parsing) 与分类器 (classifier)。"""
